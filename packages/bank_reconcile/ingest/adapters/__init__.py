"""One module per institution export format."""
