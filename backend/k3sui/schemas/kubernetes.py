from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class KubectlCommand(BaseModel):
    command: Any = None


class KubectlOutput(BaseModel):
    output: str


class YamlContent(BaseModel):
    yaml: str


class ScalePayload(BaseModel):
    replicas: Any = None


class OperationResult(BaseModel):
    message: str
    output: str | None = None


class TopologyView(BaseModel):
    namespace: str
    lines: list[str]


class ClusterOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    agents: Any = None
    servers: Any = None
    k3s_version: str | None = Field(default=None, alias="k3sVersion")
    port: Any = None


class ClusterCreatePayload(BaseModel):
    name: str | None = None
    options: ClusterOptions | None = None


class K3dStatus(BaseModel):
    installed: bool
    version: str | None = None
    error: str | None = None


class VersionInfo(BaseModel):
    k8s: str
    k3d: str


class HelmInstallPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chart: str | None = None
    repo: str | None = None
    version: str | None = None
    release_name: str | None = Field(default=None, alias="releaseName")
    namespace: str | None = None
    values_yaml: str | None = Field(default=None, alias="valuesYaml")


class HelmInstallResult(BaseModel):
    success: bool = True
    output: str
