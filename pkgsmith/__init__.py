"""Recipe-driven source-to-binary package builder."""
