"""Input and output adapters (CSV, Arrow, DataFrame, TOML/YAML policy files)."""
