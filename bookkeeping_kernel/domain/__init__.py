"""Pure domain layer: values, model and reported conditions. Zero I/O."""
