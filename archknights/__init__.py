"""Combat stat records for a tower-defence game and a Wavefront OBJ/MTL loader."""

__version__ = "0.1.0"

__all__ = ["mtl", "obj", "objcallback", "stats"]