# archknights

Building blocks for a tower-defence strategy game, in plain Python with no
third-party dependencies: the records that describe abilities, attributes
and combat, and a loader for Wavefront `.obj` models and `.mtl` material
libraries.

## Modules

- `archknights.stats` – `Ability` (an integer counter that is enabled while
  its effective value is positive; `set_original` shifts the effective value
  by the change), `Attribute` (original, minimum, maximum and effective
  values), and the combat records `DamageData`, `AttackData` and `HealData`
  with their kinds `DamageType` (`NORMAL`, `MAGICAL`, `DIRECT`) and
  `DistanceType` (`NEAR`, `REMOTE`). `AttackData.source` holds a weak
  reference; `source_entity` returns the referenced object or `None`.
- `archknights.mtl` – `load_mtl` reads a material library from a text or
  binary stream into a `MaterialLibrary` (`materials`, `material_map` from
  name to index, and `warning`). Each `Material` carries colours, scalar and
  PBR values, texture names with their `TextureOption`s, and any unknown
  parameters. `MaterialFileReader` and `MaterialStreamReader` load a library
  by name and raise `MaterialNotFound` when they cannot. The module also
  exposes the token helpers used by the OBJ parser (`parse_real`,
  `parse_reals`, `parse_triple`, `fix_index`, `try_parse_double`, …).
- `archknights.obj` – `load_obj` and `load_obj_stream` read a model into an
  `ObjResult`: an `Attrib` with flat vertex, normal and texture-coordinate
  lists, a list of `Shape`s each holding a `Mesh` of `Index` values, the
  materials, and collected warnings. With `triangulate` on, every polygon
  becomes a fan of triangles.
- `archknights.objcallback` – `load_obj_with_callback` walks a model and
  calls the functions set on an `ObjCallbacks` object for each vertex,
  normal, texture coordinate, face, `usemtl`, `mtllib`, group and object,
  instead of building the model in memory. It returns the warnings.

## Examples

```python
from archknights.stats import Ability

block = Ability(original=2, effective=2)
block.set_original(0)
assert not block.is_abled()
```

Reading a material library from a stream:

```python
import io
from archknights.mtl import load_mtl

library = load_mtl(io.StringIO("newmtl stone\nKd 0.5 0.5 0.5\n"))
stone = library.materials[library.material_map["stone"]]
```

Reading a model from disk; material files named on `mtllib` lines are
looked up by joining the base directory and the file name as strings, so
give the directory with its trailing separator:

```python
from archknights.obj import load_obj

result = load_obj("assets/ground.obj", "assets/", True)
for shape in result.shapes:
    print(shape.name, len(shape.mesh.num_face_vertices))
```

`load_obj` raises `OSError` if the model file cannot be opened; a missing
material file only adds a line to `result.warning`.

Streaming a model:

```python
import io
from archknights.objcallback import ObjCallbacks, load_obj_with_callback

points = []
callbacks = ObjCallbacks(vertex=lambda x, y, z, w: points.append((x, y, z)))
load_obj_with_callback(io.StringIO("v 1 2 3\n"), callbacks)
```

## What it does not do

The package does not run a game. It has no game board, no units that join,
act or leave, no message delivery between them, no attribute modifiers, no
rendering or window, and no command to start anything. It supplies the stat
and combat records and the model loading only.

## Requirements

Python 3.10 or newer. The tests use pytest (`pip install .[test]`).