"""World Cup squad pipeline configuration."""
