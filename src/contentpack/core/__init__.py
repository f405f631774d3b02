"""contentpack core library."""
