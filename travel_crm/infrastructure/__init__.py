"""Infrastructure: persistence, engine, and outbound adapters."""
