import os

from placefinder.core.config_cache import clear_yaml_cache, load_yaml_cached


def setup_function():
    clear_yaml_cache()


def test_reloads_when_file_changes(tmp_path):
    path = tmp_path / "vocab.yml"
    path.write_text("cities: [pune]\n", encoding="utf-8")
    assert load_yaml_cached(str(path), ttl_seconds=3600) == {"cities": ["pune"]}

    path.write_text("cities: [pune, agra]\n", encoding="utf-8")
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + 10))

    assert load_yaml_cached(str(path), ttl_seconds=3600) == {"cities": ["pune", "agra"]}


def test_callers_get_independent_copies(tmp_path):
    path = tmp_path / "vocab.yml"
    path.write_text("cities: [pune]\n", encoding="utf-8")

    first = load_yaml_cached(str(path))
    first["cities"].append("mutated")

    assert load_yaml_cached(str(path)) == {"cities": ["pune"]}


def test_missing_or_non_mapping_file_yields_default(tmp_path):
    assert load_yaml_cached(str(tmp_path / "missing.yml"), default={"cities": []}) == {"cities": []}

    path = tmp_path / "list.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    assert load_yaml_cached(str(path)) == {}
