"""Build orchestration for Hermes on Windows: CMake/Ninja/MSVC builds and NuGet packaging."""

__version__ = "0.1.0"

__all__ = ["__version__"]
