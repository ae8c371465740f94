"""Git adapter, smart commit workflow and command dispatch."""
