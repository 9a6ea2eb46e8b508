"""Foundation layer: errors, configuration, logging."""
