"""Wavefront OBJ loading into vertex attributes, shapes and materials."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .mtl import (
    MaterialFileReader,
    MaterialLibrary,
    MaterialNotFound,
    VertexIndex,
    c_atoi,
    first_word,
    parse_real,
    parse_reals,
    parse_triple,
)

_SPACE = " \t"
_TOKEN_END = " \t\r"
_INDEX_END = "/ \t\r"
_NEW_LINE = "\r\n\0"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")

MaterialReader = Callable[[str], MaterialLibrary]


@dataclass(frozen=True)
class Index:
    """Indices of one face corner; -1 where a component is not used."""

    vertex_index: int = -1
    normal_index: int = -1
    texcoord_index: int = -1

    @classmethod
    def from_vertex_index(cls, vi: VertexIndex) -> "Index":
        return cls(vertex_index=vi.v_idx, normal_index=vi.vn_idx, texcoord_index=vi.vt_idx)


@dataclass
class Tag:
    """A subdivision tag (``t`` line) with its integer, real and string values."""

    name: str = ""
    int_values: list = field(default_factory=list)
    float_values: list = field(default_factory=list)
    string_values: list = field(default_factory=list)


@dataclass
class Mesh:
    """Face corners, the number of corners per face and per-face material ids."""

    indices: list = field(default_factory=list)
    num_face_vertices: list = field(default_factory=list)
    material_ids: list = field(default_factory=list)
    tags: list = field(default_factory=list)


@dataclass
class Shape:
    name: str = ""
    mesh: Mesh = field(default_factory=Mesh)


@dataclass
class Attrib:
    """Flat lists: xyz positions, xyz normals and uv texture coordinates."""

    vertices: list = field(default_factory=list)
    normals: list = field(default_factory=list)
    texcoords: list = field(default_factory=list)


@dataclass
class ObjResult:
    """Everything read from an OBJ file, with any warnings collected on the way."""

    attrib: Attrib = field(default_factory=Attrib)
    shapes: list = field(default_factory=list)
    materials: list = field(default_factory=list)
    warning: str = ""


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
    """Split on single spaces like a delimited getline: no empty trailing item."""
    parts = text.split(" ")
    if parts and parts[-1] == "":
        parts.pop()
    return parts


def _export_face_group(
    shape: Shape,
    face_group: list,
    tags: list,
    material_id: int,
    name: str,
    triangulate: bool,
) -> bool:
    """Append the pending faces to ``shape``; False if there were none."""
    if not face_group:
        return False
    mesh = shape.mesh
    for face in face_group:
        if triangulate:
            if len(face) < 3:
                continue
            first = Index.from_vertex_index(face[0])
            for previous, current in zip(face[1:], face[2:]):
                mesh.indices.extend(
                    (first, Index.from_vertex_index(previous), Index.from_vertex_index(current))
                )
                mesh.num_face_vertices.append(3)
                mesh.material_ids.append(material_id)
        else:
            mesh.indices.extend(Index.from_vertex_index(vi) for vi in face)
            # The count is stored in a byte.
            mesh.num_face_vertices.append(len(face) & 0xFF)
            mesh.material_ids.append(material_id)
    shape.name = name
    mesh.tags = list(tags)
    return True


def _parse_tag_sizes(token: str) -> tuple:
    sizes = [0, 0, 0]
    for slot in range(3):
        sizes[slot] = c_atoi(token)
        token = token[_cspn(token, _INDEX_END):]
        if slot == 2:
            return sizes, token[1:]
        if not token.startswith("/"):
            return sizes, token
        token = token[1:]
    return sizes, token


def _parse_tag(token: str) -> Tag:
    tag = Tag(name=first_word(token))
    token = token[len(tag.name) + 1:]
    (num_ints, num_reals, num_strings), token = _parse_tag_sizes(token)
    for _ in range(max(0, num_ints)):
        tag.int_values.append(c_atoi(token))
        token = token[_cspn(token, _INDEX_END) + 1:]
    for _ in range(max(0, num_reals)):
        value, token = parse_real(token)
        tag.float_values.append(value)
        token = token[_cspn(token, _INDEX_END) + 1:]
    for _ in range(max(0, num_strings)):
        word = first_word(token)
        tag.string_values.append(word)
        token = token[len(word) + 1:]
    return tag


def _group_names(token: str) -> list:
    names = []
    while not _at_line_end(token):
        token = token.lstrip(_SPACE)
        end = _cspn(token, _TOKEN_END)
        names.append(token[:end])
        token = token[end:].lstrip(_TOKEN_END)
    return names


def _load_materials(
    token: str, reader: MaterialReader, library: MaterialLibrary, warnings: list
) -> None:
    filenames = _split_filenames(token)
    if not filenames:
        warnings.append("WARN: Looks like empty filename for mtllib. Use default material. \n")
        return
    for filename in filenames:
        try:
            loaded = reader(filename)
        except MaterialNotFound as exc:
            warnings.append(str(exc))
            continue
        warnings.append(loaded.warning)
        library += loaded
        return
    warnings.append("WARN: Failed to load material file(s). Use default material.\n")


def load_obj_stream(
    stream: Any,
    material_reader: Optional[MaterialReader] = None,
    triangulate: bool = True,
) -> ObjResult:
    """Parse OBJ data from a text or binary stream.

    ``material_reader`` is called with each ``mtllib`` file name and returns a
    ``MaterialLibrary`` or raises ``MaterialNotFound``; without one, ``mtllib``
    lines are ignored.
    """
    v: list = []
    vn: list = []
    vt: list = []
    tags: list = []
    face_group: list = []
    name = ""
    library = MaterialLibrary()
    material = -1
    warnings: list = []
    shapes: list = []
    shape = Shape()

    def flush() -> None:
        if _export_face_group(shape, face_group, tags, material, name, triangulate):
            shapes.append(copy.deepcopy(shape))

    for line in _LINE_BREAK.split(_read_text(stream)):
        token = line.lstrip(_SPACE)
        if not token or token[0] in "\0#":
            continue

        if _is_command(token, "v"):
            values, _ = parse_reals(token[2:], (0.0, 0.0, 0.0))
            v.extend(values)
        elif _is_command(token, "vn"):
            values, _ = parse_reals(token[3:], (0.0, 0.0, 0.0))
            vn.extend(values)
        elif _is_command(token, "vt"):
            values, _ = parse_reals(token[3:], (0.0, 0.0))
            vt.extend(values)
        elif _is_command(token, "f"):
            token = token[2:].lstrip(_SPACE)
            face = []
            while not _at_line_end(token):
                vi, token = parse_triple(token, len(v) // 3, len(vn) // 3, len(vt) // 2)
                face.append(vi)
                token = token.lstrip(_TOKEN_END)
            face_group.append(face)
        elif _is_command(token, "usemtl"):
            new_material = library.material_map.get(first_word(token[7:]), -1)
            if new_material != material:
                flush()
                face_group = []
                material = new_material
        elif _is_command(token, "mtllib"):
            if material_reader is not None:
                _load_materials(token[7:], material_reader, library, warnings)
        elif _is_command(token, "g"):
            flush()
            shape = Shape()
            face_group = []
            names = _group_names(token)
            name = names[1] if len(names) > 1 else ""
        elif _is_command(token, "o"):
            flush()
            face_group = []
            shape = Shape()
            name = first_word(token[2:])
        elif _is_command(token, "t"):
            tags.append(_parse_tag(token[2:]))
        # Unknown commands are ignored.

    if _export_face_group(shape, face_group, tags, material, name, triangulate) or shape.mesh.indices:
        shapes.append(shape)

    return ObjResult(
        attrib=Attrib(vertices=v, normals=vn, texcoords=vt),
        shapes=shapes,
        materials=library.materials,
        warning="".join(warnings),
    )


def load_obj(
    filename: str,
    mtl_basedir: Optional[str] = None,
    triangulate: bool = True,
) -> ObjResult:
    """Load an OBJ file; material files are looked up under ``mtl_basedir``.

    Raises OSError if the file cannot be opened.
    """
    try:
        handle = open(filename, encoding="utf-8", errors="surrogateescape", newline="")
    except OSError as exc:
        raise OSError(f"Cannot open file [{filename}]") from exc
    with handle:
        return load_obj_stream(handle, MaterialFileReader(mtl_basedir or ""), triangulate)