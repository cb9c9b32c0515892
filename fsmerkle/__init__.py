"""fsmerkle command-line interface."""
