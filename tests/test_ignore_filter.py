import pytest

from devsync.config import Config, GlobalConfig, WorkspaceConfig
from devsync.ignore import IgnoreFilter

pytestmark = pytest.mark.unit


def test_workspace_relative_and_wildcard_patterns():
    config = Config(
        global_config=GlobalConfig(),
        workspaces=[
            WorkspaceConfig(
                src_dir="/local/dir1/",
                syncers=[],
                ignore=["*/ignore-1/*", "ignore-2/*", "ignore-3"],
            )
        ],
    )
    (ws,) = config.build_workspaces()
    assert ws.should_sync("/local/dir1/random-file")
    assert not ws.should_sync("/local/dir1/subdir1/ignore-1/file1")
    assert not ws.should_sync("/local/dir1/subdir2/ignore-1/file2")
    assert not ws.should_sync("/local/dir1/ignore-2/file2")
    assert not ws.should_sync("/local/dir1/ignore-3")
    # relative patterns are anchored at the root, not matched anywhere
    assert ws.should_sync("/local/dir1/sub/ignore-2/file2")


def test_global_patterns_apply_without_workspace_patterns():
    config = Config(
        global_config=GlobalConfig(ignore=["*.swp", "/var/log/*"]),
        workspaces=[WorkspaceConfig(src_dir="/src/a/", ignore=None)],
    )
    (ws,) = config.build_workspaces()
    assert not ws.should_sync("/src/a/notes.txt.swp")
    assert not ws.should_sync("/src/a/deep/er/file.swp")
    assert ws.should_sync("/src/a/notes.txt")


def test_global_and_workspace_patterns_union():
    f = IgnoreFilter.for_workspace("/w/", ["*/.git/*"], ["build/*"])
    assert not f.should_sync("/w/repo/.git/HEAD")
    assert not f.should_sync("/w/build/out.o")
    assert f.should_sync("/w/src/main.c")
    assert f.patterns == ("/w/*/.git/*", "/w/build/*")


def test_absolute_patterns_used_as_is():
    f = IgnoreFilter.for_workspace("/w/", ["/tmp/*"])
    assert f.patterns == ("/tmp/*",)
    assert not f.should_sync("/tmp/anything")
    assert f.should_sync("/w/tmp/anything")


def test_empty_filter_accepts_everything():
    f = IgnoreFilter()
    assert f.should_sync("/any/path")


def test_character_classes_and_question_mark():
    f = IgnoreFilter(["/w/file?.[ch]"])
    assert not f.should_sync("/w/file1.c")
    assert not f.should_sync("/w/fileX.h")
    assert f.should_sync("/w/file10.c")
    assert f.should_sync("/w/file1.o")


def test_glob_characters_in_root_are_literal():
    f = IgnoreFilter.for_workspace("/w/proj[1]/", ["build/*", "*.pyc"])
    assert not f.should_sync("/w/proj[1]/build/out.o")
    assert not f.should_sync("/w/proj[1]/pkg/mod.pyc")
    assert f.should_sync("/w/proj[1]/src/main.c")
    assert f.should_sync("/w/proj1/build/out.o")
