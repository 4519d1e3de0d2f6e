"""Streaming Wavefront OBJ parsing that reports each element to callbacks."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .mtl import (
    MaterialLibrary,
    MaterialNotFound,
    first_word,
    parse_reals,
    parse_raw_triple,
)
from .obj import Index

_SPACE = " \t"
_TOKEN_END = " \t\r"
_NEW_LINE = "\r\n\0"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")

MaterialReader = Callable[[str], MaterialLibrary]


@dataclass
class ObjCallbacks:
    """Callbacks for the elements of an OBJ stream; any of them may be None.

    - ``vertex(x, y, z, w)``: a ``v`` line; ``w`` is 1.0 when absent.
    - ``normal(x, y, z)``: a ``vn`` line.
    - ``texcoord(u, v, w)``: a ``vt`` line; missing values are 0.0.
    - ``index(indices)``: an ``f`` line as a list of ``Index`` values, exactly
      as written (not made 0-based); absent components are 0.
    - ``usemtl(name, material_id)``: the id is -1 for an unknown material.
    - ``mtllib(materials)``: all materials loaded so far, after a successful load.
    - ``group(names)``: the names on a ``g`` line, possibly none.
    - ``object(name)``: the name on an ``o`` line.
    """

    vertex: Optional[Callable[[float, float, float, float], Any]] = None
    normal: Optional[Callable[[float, float, float], Any]] = None
    texcoord: Optional[Callable[[float, float, float], Any]] = None
    index: Optional[Callable[[list], Any]] = None
    usemtl: Optional[Callable[[str, int], Any]] = None
    mtllib: Optional[Callable[[list], Any]] = None
    group: Optional[Callable[[list], Any]] = None
    object: Optional[Callable[[str], Any]] = None


def _cspn(text: str, chars: str) -> int:
    for pos, char in enumerate(text):
        if char in chars:
            return pos
    return len(text)


def _is_command(token: str, command: str) -> bool:
    size = len(command)
    return token.startswith(command) and len(token) > size and token[size] in _SPACE


def _at_line_end(token: str) -> bool:
    return not token or token[0] in _NEW_LINE


def _read_text(stream: Any) -> str:
    data = stream.read()
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", "surrogateescape")
    return data


def _split_filenames(text: str) -> list:
    parts = text.split(" ")
    if parts and parts[-1] == "":
        parts.pop()
    return parts


def _group_names(token: str) -> list:
    names = []
    while not _at_line_end(token):
        token = token.lstrip(_SPACE)
        end = _cspn(token, _TOKEN_END)
        names.append(token[:end])
        token = token[end:].lstrip(_TOKEN_END)
    return names


def _face_indices(token: str) -> list:
    token = token.lstrip(_SPACE)
    indices = []
    while not _at_line_end(token):
        vi, token = parse_raw_triple(token)
        indices.append(Index.from_vertex_index(vi))
        token = token.lstrip(_TOKEN_END)
    return indices


def _load_materials(
    token: str, reader: MaterialReader, library: MaterialLibrary, warnings: list
) -> bool:
    """Try each named library in turn; True once one of them loads."""
    filenames = _split_filenames(token)
    if not filenames:
        warnings.append("WARN: Looks like empty filename for mtllib. Use default material. \n")
        return False
    for filename in filenames:
        try:
            loaded = reader(filename)
        except MaterialNotFound as exc:
            warnings.append(str(exc))
            continue
        warnings.append(loaded.warning)
        library += loaded
        return True
    warnings.append("WARN: Failed to load material file(s). Use default material.\n")
    return False


def load_obj_with_callback(
    stream: Any,
    callbacks: ObjCallbacks,
    material_reader: Optional[MaterialReader] = None,
) -> str:
    """Parse OBJ data from a text or binary stream, calling ``callbacks`` per element.

    ``material_reader`` is called with each ``mtllib`` file name and returns a
    ``MaterialLibrary`` or raises ``MaterialNotFound``; without one, ``mtllib``
    lines are ignored. Tag lines are ignored. Returns the collected warnings.
    """
    library = MaterialLibrary()
    material_id = -1
    warnings: list = []

    for line in _LINE_BREAK.split(_read_text(stream)):
        token = line.lstrip(_SPACE)
        if not token or token[0] in "\0#":
            continue

        if _is_command(token, "v"):
            (x, y, z, w), _ = parse_reals(token[2:], (0.0, 0.0, 0.0, 1.0))
            if callbacks.vertex is not None:
                callbacks.vertex(x, y, z, w)
        elif _is_command(token, "vn"):
            (x, y, z), _ = parse_reals(token[3:], (0.0, 0.0, 0.0))
            if callbacks.normal is not None:
                callbacks.normal(x, y, z)
        elif _is_command(token, "vt"):
            (x, y, z), _ = parse_reals(token[3:], (0.0, 0.0, 0.0))
            if callbacks.texcoord is not None:
                callbacks.texcoord(x, y, z)
        elif _is_command(token, "f"):
            indices = _face_indices(token[2:])
            if callbacks.index is not None and indices:
                callbacks.index(indices)
        elif _is_command(token, "usemtl"):
            name = first_word(token[7:])
            material_id = library.material_map.get(name, -1)
            if callbacks.usemtl is not None:
                callbacks.usemtl(name, material_id)
        elif _is_command(token, "mtllib"):
            if material_reader is not None:
                found = _load_materials(token[7:], material_reader, library, warnings)
                if found and callbacks.mtllib is not None:
                    callbacks.mtllib(list(library.materials))
        elif _is_command(token, "g"):
            names = _group_names(token)
            if callbacks.group is not None:
                callbacks.group(names[1:])
        elif _is_command(token, "o"):
            name = first_word(token[2:])
            if callbacks.object is not None:
                callbacks.object(name)
        # Unknown commands, tags included, are ignored.

    return "".join(warnings)