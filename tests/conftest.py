from __future__ import annotations

from pathlib import Path
from typing import Dict

import pytest
import yaml

from jxtask.dsl import pod_template
from jxtask.model import Pod


@pytest.fixture()
def templates() -> Dict[str, Pod]:
    return {
        "maven": pod_template(
            "maven-image",
            name="maven",
            env={"GIT_REF": "master", "PATH": "/usr/bin"},
            volume_mounts={"docker-sock": "/var/run/docker.sock"},
        ),
        "go": pod_template("go-image", name="go", env={"GOPATH": "/go", "DOCKER_HOST": "tcp://x"}),
    }


def write_yaml(path: Path, doc) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(doc, sort_keys=False), encoding="utf-8")
    return path


MAVEN_POD = """
apiVersion: v1
kind: Pod
metadata:
  name: jenkins-maven
spec:
  containers:
  - name: maven
    image: jenkinsxio/builder-maven:0.1.1
    command: ["/bin/sh", "-c"]
    args: ["cat"]
    workingDir: /home/jenkins
    resources:
      requests:
        cpu: 400m
    env:
    - name: GIT_COMMITTER_EMAIL
      value: jenkins-x@googlegroups.com
    - name: DOCKER_CONFIG
      value: /home/jenkins/.docker/
    - name: XDG_CONFIG_HOME
      value: /home/jenkins
    - name: _JAVA_OPTIONS
      value: -Xmx192m
    volumeMounts:
    - name: workspace-volume
      mountPath: /home/jenkins
  - name: jnlp
    image: jenkinsci/jnlp-slave:3.14-1
"""


@pytest.fixture()
def pod_templates_file(tmp_path: Path) -> Path:
    return write_yaml(
        tmp_path / "pod-templates.yaml",
        {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {"name": "jenkins-x-pod-templates"},
            "data": {"maven": MAVEN_POD, "empty": ""},
        },
    )


@pytest.fixture()
def packs_dir(tmp_path: Path) -> Path:
    root = tmp_path / "packs"
    write_yaml(
        root / "maven" / "pipeline.yaml",
        {
            "agent": {"label": "jenkins-maven", "container": "maven"},
            "pipelines": {
                "release": {
                    "setVersion": {"steps": [{"sh": "jx step next-version"}]},
                    "build": {
                        "steps": [
                            {"sh": "mvn deploy"},
                            {"dir": "charts/app", "steps": [{"sh": "make release"}]},
                        ]
                    },
                },
                "pullRequest": {"build": {"steps": [{"sh": "mvn install"}]}},
            },
        },
    )
    return root


@pytest.fixture()
def yaml_file():
    return write_yaml
