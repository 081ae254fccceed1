"""World Cup squad data pipeline."""
