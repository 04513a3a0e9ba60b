"""dockwatch command line interface."""
