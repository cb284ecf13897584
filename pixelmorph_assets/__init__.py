"""Static data shipped with pixelmorph (the bundled target portrait)."""
