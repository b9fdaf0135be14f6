"""SPARQL vocabulary, result parsing and query execution."""
