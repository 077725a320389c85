from __future__ import annotations

import pytest

from jxtask import compiler
from jxtask.compiler import CompilerSettings, compile_task, flatten_step, normalize_dir, select_lifecycles
from jxtask.dsl import group, lifecycle, lifecycles, pipeline, step
from jxtask.errors import ResolutionError, UnsupportedKindError
from jxtask.model import Container, EnvVar, Pipelines, Pod, PodSpec
from jxtask.output import render_task


def commands(steps):
    return [s.args[1] for s in steps]


def env_names(container):
    return [e.name for e in container.env or []]


# ---------------------------------------------------------------------
# normalize_dir
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "declared, inherited, expected",
    [
        ("", "/workspace/foo", "/workspace/foo"),
        (None, "/workspace/foo", "/workspace/foo"),
        ("./bar", "/workspace", "/workspace/bar"),
        ("baz", "/workspace", "/workspace/baz"),
        ("baz/qux", "/workspace/foo", "/workspace/baz/qux"),
        ("a/../b", "/workspace", "/workspace/b"),
        ("/abs/path", "/workspace", "/abs/path"),
    ],
)
def test_normalize_dir(declared, inherited, expected):
    assert normalize_dir(declared, inherited) == expected


def test_normalize_dir_is_idempotent():
    once = normalize_dir("./bar", "/workspace")
    assert normalize_dir(once, "/elsewhere") == once


def test_normalize_dir_custom_workspace():
    assert normalize_dir("./src", "/home", workspace="/home") == "/home/src"


# ---------------------------------------------------------------------
# flatten_step
# ---------------------------------------------------------------------

def test_tree_without_commands_flattens_to_nothing(templates):
    tree = group(group(), group(step(None, container="go")), dir="src")
    assert flatten_step(tree, "maven", "/workspace", templates) == []


def test_parent_command_runs_before_children(templates):
    tree = step("parent", step("child-1", step("grandchild")), step("child-2"))
    out = flatten_step(tree, "maven", "/workspace", templates)
    assert commands(out) == ["parent", "child-1", "grandchild", "child-2"]


def test_children_inherit_nearest_container_and_dir(templates):
    tree = group(group(step("make"), container="go"), dir="src")
    [out] = flatten_step(tree, "maven", "/workspace", templates)
    assert out.working_dir == "/workspace/src"
    assert env_names(out) == ["GOPATH"]


def test_root_step_uses_agent_container_and_workspace(templates):
    [out] = flatten_step(step("mvn install"), "maven", "/workspace", templates)
    assert out.working_dir == "/workspace"
    assert env_names(out) == ["PATH"]


def test_each_step_resolves_its_subtree_container(templates, monkeypatch: pytest.MonkeyPatch):
    seen = []
    real = compiler.resolve_container

    def recording(declared, inherited, templates, default_name):
        seen.append((declared, inherited))
        return real(declared, inherited, templates, default_name)

    monkeypatch.setattr(compiler, "resolve_container", recording)
    tree = step("build", step("test"), step("lint", container="maven"), container="go")
    flatten_step(tree, "maven", "/workspace", templates)

    assert seen == [("go", None), ("go", None), ("maven", None)]


def test_sibling_overrides_do_not_leak(templates):
    tree = group(
        step("a", container="go"),
        step("b", dir="sub"),
        step("c"),
    )
    a, b, c = flatten_step(tree, "maven", "/workspace", templates)
    assert env_names(a) == ["GOPATH"]
    assert env_names(b) == ["PATH"]
    assert env_names(c) == ["PATH"]
    assert b.working_dir == "/workspace/sub"
    assert c.working_dir == "/workspace"


def test_container_override_ignores_dir_on_same_step(templates):
    # a step naming a container keeps the inherited dir, even with `dir` set
    tree = step("build", step("test"), container="go", dir="sub")
    parent, child = flatten_step(tree, "maven", "/workspace/app", templates)
    assert parent.working_dir == "/workspace/app"
    assert child.working_dir == "/workspace/app"
    assert env_names(parent) == ["GOPATH"]
    assert env_names(child) == ["GOPATH"]


def test_dir_override_without_container_applies_to_subtree(templates):
    tree = step("build", step("test"), dir="./sub")
    parent, child = flatten_step(tree, "maven", "/workspace", templates)
    assert parent.working_dir == "/workspace/sub"
    assert child.working_dir == "/workspace/sub"


def test_generated_container_shape(templates):
    [out] = flatten_step(step("go build"), "go", "/workspace", templates)
    assert out.image == "jenkinsxio/jx:latest"
    assert out.command == ["/bin/sh"]
    assert out.args == ["-c", "go build"]
    assert out.volume_mounts is None


def test_missing_template_falls_back_and_is_recorded_once(templates):
    tree = group(step("a", container="nodejs"), step("b", container="nodejs"), step("c"))
    missing = set()
    out = flatten_step(tree, "maven", "/workspace", templates, missing=missing)
    assert missing == {"nodejs"}
    assert [env_names(c) for c in out] == [["PATH"], ["PATH"], ["PATH"]]


def test_empty_container_name_uses_default(templates):
    [out] = flatten_step(step("x"), None, "/workspace", templates)
    assert env_names(out) == ["PATH"]


def test_default_template_without_containers_is_fatal():
    templates = {"maven": Pod(spec=PodSpec(containers=[]))}
    with pytest.raises(ResolutionError, match="no containers for pod template nodejs"):
        flatten_step(step("x", container="nodejs"), "maven", "/workspace", templates)


def test_flatten_does_not_touch_templates(templates):
    flatten_step(step("x"), "maven", "/workspace", templates)
    skeleton = templates["maven"].spec.containers[0]
    assert skeleton.image == "maven-image"
    assert skeleton.volume_mounts
    assert env_names(skeleton) == ["GIT_REF", "PATH"]


# ---------------------------------------------------------------------
# select_lifecycles
# ---------------------------------------------------------------------

def test_select_known_kinds():
    release = lifecycles(build=lifecycle(step("r")))
    pr = lifecycles(build=lifecycle(step("p")))
    pipelines = Pipelines(release=release, pull_request=pr)
    assert select_lifecycles("release", pipelines) is release
    assert select_lifecycles("pull-request", pipelines) is pr
    assert select_lifecycles("feature", pipelines) is None


def test_select_unknown_kind_lists_supported_kinds():
    with pytest.raises(UnsupportedKindError) as excinfo:
        select_lifecycles("nightly", Pipelines())
    assert "nightly" in str(excinfo.value)
    assert "release, pull-request, feature" in str(excinfo.value)


# ---------------------------------------------------------------------
# compile_task
# ---------------------------------------------------------------------

def test_compile_end_to_end():
    templates = {
        "maven": Pod(
            spec=PodSpec(
                containers=[Container(image="old-image", env=[EnvVar(name="GIT_REF"), EnvVar(name="PATH")])]
            )
        )
    }
    config = pipeline(
        container="maven",
        release=lifecycles(build=lifecycle(step("go build", dir="./app"))),
    )

    result = compile_task("go", config, "release", templates)

    assert result.task.name == "jx-task-go-release"
    assert result.missing_templates == set()
    [out] = result.task.steps
    assert out.to_dict() == {
        "image": "jenkinsxio/jx:latest",
        "command": ["/bin/sh"],
        "args": ["-c", "go build"],
        "workingDir": "/workspace/app",
        "env": [{"name": "PATH"}],
    }


def test_compile_orders_stages_then_steps(templates):
    config = pipeline(
        container="maven",
        release=lifecycles(
            build=lifecycle(step("b1")),
            setup=lifecycle(step("a1"), step("a2")),
            promote=lifecycle(step("p1")),
        ),
    )
    result = compile_task("maven", config, "release", templates)
    assert commands(result.task.steps) == ["a1", "a2", "b1", "p1"]


def test_compile_kind_without_lifecycles_is_empty(templates):
    config = pipeline(container="maven", release=lifecycles(build=lifecycle(step("x"))))
    result = compile_task("go", config, "feature", templates)
    assert result.task.name == "jx-task-go-feature"
    assert result.task.steps == []


def test_compile_pull_request_name(templates):
    config = pipeline(pull_request=lifecycles(build=lifecycle(step("x"))))
    result = compile_task("Go_Lang", config, "pull-request", templates)
    assert result.task.name == "jx-task-go-lang-pull-request"
    assert len(result.task.steps) == 1


def test_compile_collects_missing_templates(templates):
    config = pipeline(
        container="gradle",
        release=lifecycles(build=lifecycle(step("a"), step("b", container="nodejs"), step("c", container="go"))),
    )
    result = compile_task("gradle", config, "release", templates)
    assert result.missing_templates == {"gradle", "nodejs"}
    assert len(result.task.steps) == 3


def test_compile_aborts_on_unresolvable_step():
    templates = {"maven": Pod(spec=PodSpec(containers=[Container(image="m")]))}
    broken = {"maven": Pod()}
    config = pipeline(release=lifecycles(build=lifecycle(step("ok"), step("bad", container="nodejs"))))

    assert len(compile_task("x", config, "release", templates).task.steps) == 2
    with pytest.raises(ResolutionError):
        compile_task("x", config, "release", broken)


def test_compile_unknown_kind(templates):
    with pytest.raises(UnsupportedKindError):
        compile_task("go", pipeline(), "nightly", templates)


def test_compile_is_deterministic(templates):
    config = pipeline(
        container="maven",
        release=lifecycles(
            pre_build=lifecycle(step("a", container="nodejs")),
            build=lifecycle(group(step("b"), step("c", dir="x"), container="go")),
        ),
    )
    first = compile_task("go", config, "release", templates)
    second = compile_task("go", config, "release", templates)
    assert first.task == second.task
    assert render_task(first.task) == render_task(second.task)


def test_compile_with_custom_settings(templates):
    settings = CompilerSettings(
        workspace_dir="/src",
        default_container="go",
        runner_image="example/runner:1",
        disallowed_env_prefixes=("GO",),
        task_prefix="build-",
    )
    config = pipeline(release=lifecycles(build=lifecycle(step("make", dir="./cmd"))))
    result = compile_task("go", config, "release", templates, settings=settings)

    assert result.task.name == "build-go-release"
    [out] = result.task.steps
    assert out.image == "example/runner:1"
    assert out.working_dir == "/src/cmd"
    assert env_names(out) == ["DOCKER_HOST"]
