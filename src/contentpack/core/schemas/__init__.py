"""JSON Schema validation of definition documents."""
