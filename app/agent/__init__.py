"""Agent module for the movie agent: classification, resolution paths and the graph."""
