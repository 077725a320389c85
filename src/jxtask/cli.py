# cli.py
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Dict

import click

from jxtask import settings
from jxtask.compiler import DEFAULT_SETTINGS, compile_task
from jxtask.errors import CollaboratorError, ConfigurationError, MissingOptionError, UnsupportedKindError
from jxtask.kube import load_pod_templates, load_pod_templates_file
from jxtask.loader import load_pipeline_config, load_project_config
from jxtask.model import PIPELINE_KIND_RELEASE, PIPELINE_KINDS, Pod
from jxtask.output import render_task, write_task
from jxtask.overlay import extend_pipeline
from jxtask.packs import init_build_pack, pipeline_file
from jxtask.ui.console import Console, get_console, set_console


def _load_templates(pod_templates: str | None, namespace: str) -> Dict[str, Pod]:
    console = get_console()
    if pod_templates:
        console.print_debug(f"Loading pod templates from {pod_templates}")
        return load_pod_templates_file(pod_templates)
    console.print_debug(f"Loading pod templates from ConfigMap {settings.POD_TEMPLATES_CONFIGMAP} in {namespace}")
    return load_pod_templates(namespace)


def _packs_dir(packs_dir: str | None, url: str, ref: str, cache_dir: str) -> Path:
    console = get_console()
    if packs_dir:
        return Path(packs_dir)
    console.print_debug(f"Using build packs from {url} at {ref}")
    return init_build_pack(url, ref, cache_dir)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
def cli(debug):
    """jxtask - compile build pack pipelines into Tasks."""
    console = Console(debug=debug)
    set_console(console)


@cli.command("create-task")
@click.option("--dir", "-d", "dir_", default=None, help="The project directory (defaults to the current directory)")
@click.option("--output", "-o", default=None, help="The output file to write the Task YAML to (defaults to stdout)")
@click.option("--url", "-u", default=None, help="The URL for the build pack Git repository")
@click.option("--ref", "-r", default=None, help="The Git reference (branch, tag, sha) in the build pack repository")
@click.option("--pack", "-p", default=None, help="The build pack name (defaults to the project configuration)")
@click.option(
    "--kind",
    "-k",
    default=PIPELINE_KIND_RELEASE,
    show_default=True,
    help="The kind of pipeline to create such as: " + ", ".join(PIPELINE_KINDS),
)
@click.option("--packs-dir", default=None, help="Use a local build packs checkout instead of cloning --url")
@click.option("--pod-templates", default=None, help="Read pod templates from a ConfigMap YAML file instead of the cluster")
@click.option("--namespace", "-n", default=settings.NAMESPACE, show_default=True, help="Namespace of the pod templates ConfigMap")
@click.option("--cache-dir", default=settings.CACHE_DIR, show_default=True, help="Where build pack repositories are cloned")
def create_task(dir_, output, url, ref, pack, kind, packs_dir, pod_templates, namespace, cache_dir):
    """Creates a Task for the current folder or given build pack."""
    console = get_console()

    try:
        url = url or settings.BUILD_PACK_URL
        ref = ref or settings.BUILD_PACK_REF
        if not url:
            raise MissingOptionError.of("url")
        if not ref:
            raise MissingOptionError.of("ref")
        if not kind:
            raise MissingOptionError.of("kind")

        project_dir = Path(dir_ or os.getcwd())
        project_config, project_config_file = load_project_config(project_dir)
        pack = pack or project_config.build_pack
        if not pack:
            raise MissingOptionError.of("pack")

        templates = _load_templates(pod_templates, namespace)
        packs = _packs_dir(packs_dir, url, ref, cache_dir)
        pipeline_path = pipeline_file(packs, pack)

        pipeline_config = load_pipeline_config(pipeline_path, packs_dir=packs, cache_root=cache_dir)
        if project_config.pipeline_config is not None:
            console.print_debug(f"Extending build pack pipeline with {project_config_file}")
            pipeline_config = extend_pipeline(project_config.pipeline_config, pipeline_config)

        result = compile_task(pack, pipeline_config, kind, templates)
        console.print_missing_templates(result.missing_templates, DEFAULT_SETTINGS.default_container)

        if output:
            path = write_task(result.task, output)
            console.print_task_generated(str(path), len(result.task.steps))
        else:
            console.print_task(render_task(result.task))

    except UnsupportedKindError as e:
        console.print_error(
            "Unknown pipeline kind",
            str(e),
            suggestion=f"Pass one of: --kind {' | '.join(e.supported)}",
        )
        sys.exit(1)
    except MissingOptionError as e:
        console.print_error("Missing option", str(e))
        sys.exit(1)
    except ConfigurationError as e:
        console.print_error("Invalid configuration", e.message, details=[f"{k}: {v}" for k, v in e.details.items()])
        console.print_traceback(e)
        sys.exit(1)
    except CollaboratorError as e:
        console.print_error("Command failed", e.message, details=[f"{k}: {v}" for k, v in e.details.items()])
        console.print_traceback(e)
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


# short alias
cli.add_command(create_task, name="task")


if __name__ == "__main__":
    cli()
