"""Personal training search and booking links over MINDBODY."""
