"""Command line tool for applying and deleting charts."""
