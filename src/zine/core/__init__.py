"""Content graph: entities, diagnostics and resolution."""
