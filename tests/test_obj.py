import io

import pytest

from archknights.mtl import MaterialStreamReader
from archknights.obj import Index, load_obj, load_obj_stream


TRIANGLE = "v 1 2 3\nv 4 5 6\nv 7 8 9\nf 1 2 3\n"


def test_vertices_are_read_in_order():
    result = load_obj_stream(io.StringIO(TRIANGLE))
    assert result.attrib.vertices == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0]
    assert result.attrib.normals == []
    assert result.attrib.texcoords == []


def test_triangle_face_indices_are_zero_based():
    result = load_obj_stream(io.StringIO(TRIANGLE))
    assert len(result.shapes) == 1
    mesh = result.shapes[0].mesh
    assert [i.vertex_index for i in mesh.indices] == [0, 1, 2]
    assert all(i.normal_index == -1 and i.texcoord_index == -1 for i in mesh.indices)
    assert mesh.num_face_vertices == [3]
    assert mesh.material_ids == [-1]


def test_quad_is_triangulated_as_fan():
    text = "v 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\nf 1 2 3 4\n"
    mesh = load_obj_stream(io.StringIO(text)).shapes[0].mesh
    assert [i.vertex_index for i in mesh.indices] == [0, 1, 2, 0, 2, 3]
    assert mesh.num_face_vertices == [3, 3]


def test_quad_kept_without_triangulation():
    text = "v 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\nf 1 2 3 4\n"
    mesh = load_obj_stream(io.StringIO(text), triangulate=False).shapes[0].mesh
    assert [i.vertex_index for i in mesh.indices] == [0, 1, 2, 3]
    assert mesh.num_face_vertices == [4]


def test_full_and_normal_only_triples():
    text = (
        "v 0 0 0\nv 1 0 0\nv 1 1 0\n"
        "vt 0 0\nvt 1 0\nvt 1 1\n"
        "vn 0 0 1\nvn 0 1 0\nvn 1 0 0\n"
        "f 1/2/3 2/3/1 3//2\n"
    )
    result = load_obj_stream(io.StringIO(text))
    assert result.attrib.texcoords == [0.0, 0.0, 1.0, 0.0, 1.0, 1.0]
    indices = result.shapes[0].mesh.indices
    assert indices[0] == Index(vertex_index=0, normal_index=2, texcoord_index=1)
    assert indices[1] == Index(vertex_index=1, normal_index=0, texcoord_index=2)
    assert indices[2] == Index(vertex_index=2, normal_index=1, texcoord_index=-1)


def test_negative_indices_are_relative():
    text = "v 0 0 0\nv 1 0 0\nv 1 1 0\nf -3 -2 -1\n"
    mesh = load_obj_stream(io.StringIO(text)).shapes[0].mesh
    assert [i.vertex_index for i in mesh.indices] == [0, 1, 2]


def test_groups_make_separate_shapes():
    text = "v 0 0 0\nv 1 0 0\nv 1 1 0\ng first\nf 1 2 3\ng second\nf 3 2 1\n"
    shapes = load_obj_stream(io.StringIO(text)).shapes
    assert [s.name for s in shapes] == ["first", "second"]
    assert [i.vertex_index for i in shapes[1].mesh.indices] == [2, 1, 0]


def test_object_name():
    text = "o cube\n" + TRIANGLE
    shapes = load_obj_stream(io.StringIO(text)).shapes
    assert [s.name for s in shapes] == ["cube"]


def test_comments_blank_lines_and_crlf():
    text = "# comment\r\n\r\n  v 1 2 3\r\nv 4 5 6\rv 7 8 9\r\nf 1 2 3\r\n"
    result = load_obj_stream(io.BytesIO(text.encode()))
    assert len(result.attrib.vertices) == 9
    assert len(result.shapes[0].mesh.indices) == 3


def test_tag_values():
    text = "t crease 2/1/0 1 2 0.5\nt label 0/0/1 hello\n" + TRIANGLE
    tags = load_obj_stream(io.StringIO(text)).shapes[0].mesh.tags
    assert tags[0].name == "crease"
    assert tags[0].int_values == [1, 2]
    assert tags[0].float_values == [0.5]
    assert tags[1].string_values == ["hello"]


def test_usemtl_assigns_material_ids():
    mtl = io.StringIO("newmtl red\nKd 1 0 0\nnewmtl blue\nKd 0 0 1\n")
    text = TRIANGLE.replace("f 1 2 3\n", "") + "mtllib lib.mtl\nusemtl red\nf 1 2 3\nusemtl blue\nf 1 2 3\n"
    result = load_obj_stream(io.StringIO(text), MaterialStreamReader(mtl))
    assert [m.name for m in result.materials] == ["red", "blue"]
    assert result.shapes[0].mesh.material_ids == [0]
    assert result.shapes[-1].mesh.material_ids == [0, 1]


def test_unknown_material_gives_minus_one():
    mtl = io.StringIO("newmtl red\n")
    text = "mtllib lib.mtl\nusemtl green\n" + TRIANGLE
    result = load_obj_stream(io.StringIO(text), MaterialStreamReader(mtl))
    assert result.shapes[0].mesh.material_ids == [-1]


def test_mtllib_ignored_without_reader():
    result = load_obj_stream(io.StringIO("mtllib missing.mtl\n" + TRIANGLE))
    assert result.materials == []
    assert result.warning == ""


def test_load_obj_from_file_with_materials(tmp_path):
    (tmp_path / "scene.mtl").write_text("newmtl stone\nNs 10\n")
    obj_path = tmp_path / "scene.obj"
    obj_path.write_text("mtllib scene.mtl\nusemtl stone\n" + TRIANGLE)
    result = load_obj(str(obj_path), str(tmp_path) + "/")
    assert [m.name for m in result.materials] == ["stone"]
    assert result.materials[0].shininess == 10.0
    assert result.shapes[0].mesh.material_ids == [0]


def test_missing_material_file_warns(tmp_path):
    obj_path = tmp_path / "scene.obj"
    obj_path.write_text("mtllib nowhere.mtl\n" + TRIANGLE)
    result = load_obj(str(obj_path), str(tmp_path) + "/")
    assert "not found" in result.warning
    assert "Failed to load material file(s)" in result.warning
    assert result.materials == []


def test_missing_obj_file_raises(tmp_path):
    with pytest.raises(OSError, match="Cannot open file"):
        load_obj(str(tmp_path / "absent.obj"))