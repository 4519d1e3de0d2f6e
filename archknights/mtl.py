"""Material library (.mtl) parsing and the token helpers shared by OBJ parsing.

The token helpers take the text still to be parsed and return what they read
together with the text that follows it.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterable, Optional, Sequence

_SPACE = " \t"
_TOKEN_END = " \t\r"
_INDEX_END = "/ \t\r"
_NEW_LINE = "\r\n\0"

_POW_LUT = (1.0, 0.1, 0.01, 0.001, 0.0001, 0.00001, 0.000001, 0.0000001)

_ATOI = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")
_WORD = re.compile(r"[ \t\n\v\f\r]*([^ \t\n\v\f\r]+)")
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class TextureType(IntEnum):
    NONE = 0
    SPHERE = 1
    CUBE_TOP = 2
    CUBE_BOTTOM = 3
    CUBE_FRONT = 4
    CUBE_BACK = 5
    CUBE_LEFT = 6
    CUBE_RIGHT = 7


_TEXTURE_TYPE_NAMES = (
    ("cube_top", TextureType.CUBE_TOP),
    ("cube_bottom", TextureType.CUBE_BOTTOM),
    ("cube_left", TextureType.CUBE_LEFT),
    ("cube_right", TextureType.CUBE_RIGHT),
    ("cube_front", TextureType.CUBE_FRONT),
    ("cube_back", TextureType.CUBE_BACK),
    ("sphere", TextureType.SPHERE),
)


@dataclass(frozen=True)
class VertexIndex:
    """Indices of a face corner into positions, texture coordinates and normals."""

    v_idx: int = -1
    vt_idx: int = -1
    vn_idx: int = -1


@dataclass
class TextureOption:
    """Options given in front of a texture file name."""

    type: TextureType = TextureType.NONE
    sharpness: float = 1.0
    brightness: float = 0.0
    contrast: float = 1.0
    origin_offset: list = field(default_factory=lambda: [0.0, 0.0, 0.0])
    scale: list = field(default_factory=lambda: [1.0, 1.0, 1.0])
    turbulence: list = field(default_factory=lambda: [0.0, 0.0, 0.0])
    clamp: bool = False
    imfchan: str = "m"
    blendu: bool = True
    blendv: bool = True
    bump_multiplier: float = 1.0


def _zero3() -> list:
    return [0.0, 0.0, 0.0]


@dataclass
class Material:
    """One material of a material library."""

    name: str = ""

    ambient: list = field(default_factory=_zero3)
    diffuse: list = field(default_factory=_zero3)
    specular: list = field(default_factory=_zero3)
    transmittance: list = field(default_factory=_zero3)
    emission: list = field(default_factory=_zero3)
    shininess: float = 1.0
    ior: float = 1.0
    dissolve: float = 1.0
    illum: int = 0

    ambient_texname: str = ""
    diffuse_texname: str = ""
    specular_texname: str = ""
    specular_highlight_texname: str = ""
    bump_texname: str = ""
    displacement_texname: str = ""
    alpha_texname: str = ""

    ambient_texopt: TextureOption = field(default_factory=TextureOption)
    diffuse_texopt: TextureOption = field(default_factory=TextureOption)
    specular_texopt: TextureOption = field(default_factory=TextureOption)
    specular_highlight_texopt: TextureOption = field(default_factory=TextureOption)
    bump_texopt: TextureOption = field(default_factory=TextureOption)
    displacement_texopt: TextureOption = field(default_factory=TextureOption)
    alpha_texopt: TextureOption = field(default_factory=TextureOption)

    roughness: float = 0.0
    metallic: float = 0.0
    sheen: float = 0.0
    clearcoat_thickness: float = 0.0
    clearcoat_roughness: float = 0.0
    anisotropy: float = 0.0
    anisotropy_rotation: float = 0.0

    roughness_texname: str = ""
    metallic_texname: str = ""
    sheen_texname: str = ""
    emissive_texname: str = ""
    normal_texname: str = ""

    roughness_texopt: TextureOption = field(default_factory=TextureOption)
    metallic_texopt: TextureOption = field(default_factory=TextureOption)
    sheen_texopt: TextureOption = field(default_factory=TextureOption)
    emissive_texopt: TextureOption = field(default_factory=TextureOption)
    normal_texopt: TextureOption = field(default_factory=TextureOption)

    unknown_parameter: dict = field(default_factory=dict)


@dataclass
class MaterialLibrary:
    """Materials in file order, the index of each name, and parse warnings.

    ``library += other`` appends the materials of ``other``; a name already
    known keeps its index.
    """

    materials: list = field(default_factory=list)
    material_map: dict = field(default_factory=dict)
    warning: str = ""

    def __len__(self) -> int:
        return len(self.materials)

    def __iadd__(self, other: "MaterialLibrary") -> "MaterialLibrary":
        offset = len(self.materials)
        for name, index in other.material_map.items():
            self.material_map.setdefault(name, index + offset)
        self.materials.extend(other.materials)
        self.warning += other.warning
        return self


class MaterialNotFound(Exception):
    """A material library could not be read; the message is a warning text."""


# Token helpers.


def _cspn(text: str, chars: str) -> int:
    for pos, char in enumerate(text):
        if char in chars:
            return pos
    return len(text)


def _skip_space(text: str) -> str:
    return text.lstrip(_SPACE)


def _starts_flag(token: str, flag: str) -> bool:
    return token.startswith(flag) and len(token) > len(flag) and token[len(flag)] in _SPACE


def c_atoi(text: str) -> int:
    """Read a leading decimal integer the way C ``atoi`` does; 0 if there is none."""
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


def try_parse_double(text: str) -> Optional[float]:
    """Parse a number at the start of ``text``; None if it does not start with one.

    Accepts ``[sign] digits [. digits] [(e|E) [sign] digits]`` and ignores
    whatever follows the longest such prefix.
    """
    end = len(text)
    if end == 0:
        return None
    pos = 0
    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        pos = 1
    elif not text[0].isdigit() or not text[0].isascii():
        return None

    mantissa = 0.0
    exponent = 0
    read = 0
    while pos < end and "0" <= text[pos] <= "9":
        mantissa = mantissa * 10 + (ord(text[pos]) - 48)
        pos += 1
        read += 1
    if read == 0:
        return None

    if pos < end:
        if text[pos] == ".":
            pos += 1
            read = 1
            while pos < end and "0" <= text[pos] <= "9":
                scale = _POW_LUT[read] if read < len(_POW_LUT) else math.pow(10.0, -read)
                mantissa += (ord(text[pos]) - 48) * scale
                read += 1
                pos += 1
        if pos < end and text[pos] in "eE":
            pos += 1
            exp_sign = 1
            if pos < end and text[pos] in "+-":
                exp_sign = -1 if text[pos] == "-" else 1
                pos += 1
            elif not (pos < end and "0" <= text[pos] <= "9"):
                return None
            read = 0
            while pos < end and "0" <= text[pos] <= "9":
                exponent = exponent * 10 + (ord(text[pos]) - 48)
                pos += 1
                read += 1
            exponent *= exp_sign
            if read == 0:
                return None

    if not exponent:
        return sign * mantissa
    try:
        return sign * math.ldexp(mantissa * math.pow(5.0, exponent), exponent)
    except OverflowError:
        return sign * math.inf if mantissa else 0.0


def parse_real(text: str, default: float = 0.0) -> tuple:
    """Read one number token; return ``(value, rest)``, ``default`` if unreadable."""
    token = _skip_space(text)
    end = _cspn(token, _TOKEN_END)
    value = try_parse_double(token[:end])
    return (default if value is None else value), token[end:]


def parse_reals(text: str, defaults: Sequence[float]) -> tuple:
    """Read one number per default; return ``(values, rest)``."""
    values = []
    for default in defaults:
        value, text = parse_real(text, default)
        values.append(value)
    return values, text


def parse_on_off(text: str, default: bool = True) -> tuple:
    """Read an ``on``/``off`` token; return ``(flag, rest)``."""
    token = _skip_space(text)
    end = _cspn(token, _TOKEN_END)
    if token.startswith("on"):
        flag = True
    elif token.startswith("off"):
        flag = False
    else:
        flag = default
    return flag, token[end:]


def parse_texture_type(text: str, default: TextureType = TextureType.NONE) -> tuple:
    """Read a reflection texture type token; return ``(type, rest)``."""
    token = _skip_space(text)
    end = _cspn(token, _TOKEN_END)
    found = default
    for name, texture_type in _TEXTURE_TYPE_NAMES:
        if token.startswith(name):
            found = texture_type
            break
    return found, token[end:]


def fix_index(index: int, count: int) -> int:
    """Turn a 1-based or negative (relative) OBJ index into a 0-based one."""
    if index > 0:
        return index - 1
    if index == 0:
        return 0
    return count + index


def _split_triple(token: str) -> tuple:
    """Split ``i``, ``i/j``, ``i//k`` or ``i/j/k``; missing parts are None."""
    vertex = c_atoi(token)
    token = token[_cspn(token, _INDEX_END):]
    if not token.startswith("/"):
        return vertex, None, None, token
    token = token[1:]
    if token.startswith("/"):
        token = token[1:]
        normal = c_atoi(token)
        return vertex, None, normal, token[_cspn(token, _INDEX_END):]
    texcoord = c_atoi(token)
    token = token[_cspn(token, _INDEX_END):]
    if not token.startswith("/"):
        return vertex, texcoord, None, token
    token = token[1:]
    normal = c_atoi(token)
    return vertex, texcoord, normal, token[_cspn(token, _INDEX_END):]


def parse_triple(token: str, vsize: int, vnsize: int, vtsize: int) -> tuple:
    """Read a face corner as 0-based indices (-1 where absent); return ``(index, rest)``."""
    vertex, texcoord, normal, rest = _split_triple(token)
    index = VertexIndex(
        v_idx=fix_index(vertex, vsize),
        vt_idx=-1 if texcoord is None else fix_index(texcoord, vtsize),
        vn_idx=-1 if normal is None else fix_index(normal, vnsize),
    )
    return index, rest


def parse_raw_triple(token: str) -> tuple:
    """Read a face corner as written (0 where absent); return ``(index, rest)``."""
    vertex, texcoord, normal, rest = _split_triple(token)
    index = VertexIndex(
        v_idx=vertex,
        vt_idx=0 if texcoord is None else texcoord,
        vn_idx=0 if normal is None else normal,
    )
    return index, rest


def first_word(text: str) -> str:
    """The first whitespace-delimited word of ``text``, or an empty string."""
    match = _WORD.match(text)
    return match.group(1) if match else ""


def parse_texture_name_and_option(line: str, is_bump: bool) -> tuple:
    """Read texture options and file name; return ``(name or None, options)``."""
    option = TextureOption(imfchan="l" if is_bump else "m")
    name: Optional[str] = None
    token = line
    while token and token[0] not in _NEW_LINE:
        if _starts_flag(token, "-blendu"):
            option.blendu, token = parse_on_off(token[8:], True)
        elif _starts_flag(token, "-blendv"):
            option.blendv, token = parse_on_off(token[8:], True)
        elif _starts_flag(token, "-clamp"):
            option.clamp, token = parse_on_off(token[7:], True)
        elif _starts_flag(token, "-boost"):
            option.sharpness, token = parse_real(token[7:], 1.0)
        elif _starts_flag(token, "-bm"):
            option.bump_multiplier, token = parse_real(token[4:], 1.0)
        elif _starts_flag(token, "-o"):
            option.origin_offset, token = parse_reals(token[3:], (0.0, 0.0, 0.0))
        elif _starts_flag(token, "-s"):
            option.scale, token = parse_reals(token[3:], (1.0, 1.0, 1.0))
        elif _starts_flag(token, "-t"):
            option.turbulence, token = parse_reals(token[3:], (0.0, 0.0, 0.0))
        elif _starts_flag(token, "-type"):
            option.type, token = parse_texture_type(token[5:], TextureType.NONE)
        elif _starts_flag(token, "-imfchan"):
            token = _skip_space(token[9:])
            end = _cspn(token, _TOKEN_END)
            if end == 1:
                option.imfchan = token[0]
            token = token[end:]
        elif _starts_flag(token, "-mm"):
            (option.brightness, option.contrast), token = parse_reals(token[4:], (0.0, 1.0))
        else:
            token = _skip_space(token)
            length = _cspn(token, _TOKEN_END)
            name = token[:length]
            token = _skip_space(token[length:])
    return name, option


# Material library.

_COLOR_KEYS = {
    "Ka": "ambient",
    "Kd": "diffuse",
    "Ks": "specular",
    "Kt": "transmittance",
    "Tf": "transmittance",
    "Ke": "emission",
}

_SCALAR_KEYS = {
    "Ni": "ior",
    "Ns": "shininess",
    "Pr": "roughness",
    "Pm": "metallic",
    "Ps": "sheen",
    "Pc": "clearcoat_thickness",
    "Pcr": "clearcoat_roughness",
    "aniso": "anisotropy",
    "anisor": "anisotropy_rotation",
}

_TEXTURE_KEYS = {
    "map_Ka": ("ambient", False),
    "map_Kd": ("diffuse", False),
    "map_Ks": ("specular", False),
    "map_Ns": ("specular_highlight", False),
    "map_bump": ("bump", True),
    "bump": ("bump", True),
    "map_d": ("alpha", False),
    "disp": ("displacement", False),
    "map_Pr": ("roughness", False),
    "map_Pm": ("metallic", False),
    "map_Ps": ("sheen", False),
    "map_Ke": ("emissive", False),
    "norm": ("normal", False),
}


def _dissolve_warning(name: str) -> str:
    return (
        f'WARN: Both `d` and `Tr` parameters defined for "{name}". '
        "Use the value of `d` for dissolve.\n"
    )


def _read_text(stream: Any) -> str:
    data = stream.read()
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", "surrogateescape")
    return data


def _split_lines(text: str) -> Iterable[str]:
    return _LINE_BREAK.split(text)


def load_mtl(stream: Any) -> MaterialLibrary:
    """Parse a material library from a text or binary stream.

    The material being defined at the end is always kept, even without a name.
    """
    library = MaterialLibrary()
    warnings: list = []
    material = Material()
    has_d = False
    has_tr = False

    def flush(done: Material) -> None:
        library.material_map.setdefault(done.name, len(library.materials))
        library.materials.append(done)

    for raw in _split_lines(_read_text(stream)):
        token = raw.rstrip(_SPACE).lstrip(_SPACE)
        if not token or token[0] == "#":
            continue

        pos = _cspn(token, _SPACE)
        keyword = token[:pos] if pos < len(token) else None
        rest = token[pos + 1:]

        if keyword == "newmtl":
            if material.name:
                flush(material)
            material = Material(name=first_word(rest))
            has_d = False
            has_tr = False
        elif keyword in _COLOR_KEYS:
            values, _ = parse_reals(rest, (0.0, 0.0, 0.0))
            setattr(material, _COLOR_KEYS[keyword], values)
        elif keyword in _SCALAR_KEYS:
            value, _ = parse_real(rest)
            setattr(material, _SCALAR_KEYS[keyword], value)
        elif keyword == "illum":
            material.illum = c_atoi(_skip_space(rest))
        elif keyword == "d":
            material.dissolve, _ = parse_real(rest)
            if has_tr:
                warnings.append(_dissolve_warning(material.name))
            has_d = True
        elif keyword == "Tr":
            if has_d:
                warnings.append(_dissolve_warning(material.name))
            else:
                value, _ = parse_real(rest)
                material.dissolve = 1.0 - value
            has_tr = True
        elif keyword in _TEXTURE_KEYS:
            slot, is_bump = _TEXTURE_KEYS[keyword]
            if keyword == "map_d":
                material.alpha_texname = rest
            name, option = parse_texture_name_and_option(rest, is_bump)
            setattr(material, f"{slot}_texopt", option)
            if name is not None:
                setattr(material, f"{slot}_texname", name)
        else:
            sep = token.find(" ")
            if sep < 0:
                sep = token.find("\t")
            if sep >= 0:
                material.unknown_parameter.setdefault(token[:sep], token[sep + 1:])

    flush(material)
    library.warning = "".join(warnings)
    return library


class MaterialFileReader:
    """Loads material libraries from files found under a base directory."""

    def __init__(self, mtl_basedir: str = "") -> None:
        self.mtl_basedir = mtl_basedir

    def __call__(self, mat_id: str) -> MaterialLibrary:
        """Load ``mat_id``; MaterialNotFound if the file cannot be opened."""
        filepath = self.mtl_basedir + mat_id if self.mtl_basedir else mat_id
        try:
            with open(filepath, encoding="utf-8", errors="surrogateescape", newline="") as handle:
                return load_mtl(handle)
        except OSError as exc:
            raise MaterialNotFound(f"WARN: Material file [ {filepath} ] not found.\n") from exc


class MaterialStreamReader:
    """Loads a material library from one given stream, whatever the requested name."""

    def __init__(self, stream: Any) -> None:
        self.stream = stream

    def __call__(self, mat_id: str) -> MaterialLibrary:
        """Load from the stream; MaterialNotFound if it is closed."""
        if getattr(self.stream, "closed", False):
            raise MaterialNotFound("WARN: Material stream in error state. \n")
        return load_mtl(self.stream)