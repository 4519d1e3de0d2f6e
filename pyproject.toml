[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "archknights"
version = "0.1.0"
description = "Combat stat records for a tower-defence strategy game and a Wavefront OBJ/MTL model loader"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "game",
    "tower-defence",
    "combat",
    "wavefront",
    "obj",
    "mtl",
    "3d-model",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Real Time Strategy",
    "Topic :: Multimedia :: Graphics :: 3D Modeling",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["archknights*"]

[tool.pytest.ini_options]
addopts = "-ra"
