"""Rule execution, component evaluation and diff computation."""
