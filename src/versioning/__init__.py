"""Version specifier parsing, normalization, suggestions and the resolution service."""
