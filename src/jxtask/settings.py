# settings.py
from __future__ import annotations

import os

BUILD_PACK_URL = os.environ.get(
    "JX_BUILD_PACK_URL", "https://github.com/jenkins-x-buildpacks/jenkins-x-kubernetes.git"
)
BUILD_PACK_REF = os.environ.get("JX_BUILD_PACK_REF", "master")
NAMESPACE = os.environ.get("JX_NAMESPACE", "jx")
CACHE_DIR = os.environ.get("JXTASK_CACHE_DIR", "~/.jx/draft/packs")
POD_TEMPLATES_CONFIGMAP = os.environ.get("POD_TEMPLATES_CONFIGMAP", "jenkins-x-pod-templates")

PROJECT_CONFIG_FILE_NAME = "jenkins-x.yml"
PIPELINE_CONFIG_FILE_NAME = "pipeline.yaml"
IMPORTS_FILE_NAME = "imports.yaml"
