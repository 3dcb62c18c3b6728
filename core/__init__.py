"""core/ -- Kernel layer: configuration and the error taxonomy. No reverse dependencies."""
