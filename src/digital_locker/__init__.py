"""Digital locker command line interface."""
