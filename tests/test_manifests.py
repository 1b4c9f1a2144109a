"""End-to-end renders of the deployment and VPC fixtures."""

import pytest
import yaml

from chartwright import (
    OutputIntegrityError,
    TargetFormat,
    UndefinedReference,
    load_template,
    parse,
    render,
)
from chartwright.rendering.integrity import check_output


def _documents(text):
    return [doc for doc in yaml.safe_load_all(text) if doc is not None]


@pytest.fixture
def deployment(fixtures_dir):
    return load_template(fixtures_dir / "deployment.j2.yaml")


def test_deployment_renders_valid_manifest(deployment, service):
    artifact = render(deployment, service, TargetFormat.YAML)
    [manifest] = _documents(artifact.text)

    assert manifest["kind"] == "Deployment"
    assert manifest["metadata"]["name"] == "app-z1a2b3c4"
    assert manifest["spec"]["replicas"] == 1
    assert manifest["spec"]["strategy"]["rollingUpdate"] == {"maxSurge": 1}

    pod = manifest["spec"]["template"]["spec"]
    assert pod["imagePullSecrets"] == [{"name": "app-z1a2b3c4-registry"}]
    [container] = pod["containers"]
    assert container["image"] == "registry.local/app:1.4.2"
    assert [env["name"] for env in container["env"]] == ["DATABASE_URL", "REDIS_URL"]
    assert [p["containerPort"] for p in container["ports"]] == [8080, 9090]
    assert container["readinessProbe"]["tcpSocket"] == {"port": 8080}
    assert container["resources"]["limits"]["memory"] == "512Mi"


def test_deployment_without_ports_omits_ports_and_probe(deployment, service):
    service["ports"] = []
    text = render(deployment, service, TargetFormat.YAML).text

    assert "ports:" not in text
    assert "readinessProbe" not in text
    [manifest] = _documents(text)
    [container] = manifest["spec"]["template"]["spec"]["containers"]
    assert "ports" not in container


def test_deployment_for_storage_service_is_blank(deployment, service):
    service["is_storage"] = True
    artifact = render(deployment, service, TargetFormat.YAML)
    assert artifact.text.strip() == ""


def test_deployment_scaling_strategy(deployment, service):
    service["max_instances"] = 4
    [manifest] = _documents(render(deployment, service, TargetFormat.YAML).text)

    assert "replicas" not in manifest["spec"]
    assert manifest["spec"]["strategy"]["rollingUpdate"] == {
        "maxSurge": "25%",
        "maxUnavailable": "10%",
    }


def test_deployment_http_probe(deployment, service):
    service["readiness_probe"]["type"] = "HTTP"
    service["readiness_probe"]["path"] = "/healthz"
    [manifest] = _documents(render(deployment, service, TargetFormat.YAML).text)

    probe = manifest["spec"]["template"]["spec"]["containers"][0]["readinessProbe"]
    assert "tcpSocket" not in probe
    assert probe["httpGet"] == {"port": 8080, "path": "/healthz"}


def test_deployment_missing_field_is_located(deployment, service):
    del service["cpu_limit"]
    with pytest.raises(UndefinedReference) as excinfo:
        render(deployment, service, TargetFormat.YAML)
    assert excinfo.value.name == "cpu_limit"
    assert excinfo.value.template_name.endswith("deployment.j2.yaml")
    assert excinfo.value.line == 72


def test_vpc_renders_subnets_in_order(fixtures_dir, vpc):
    template = load_template(fixtures_dir / "terraform" / "vpc.j2.tf")
    text = render(template, vpc, TargetFormat.HCL).text

    assert 'region = "eu-west-3"' in text
    assert text.index('"aws_subnet" "private_a"') < text.index('"aws_subnet" "private_b"')
    assert "subnet_id = aws_subnet.private_a.id" in text


def test_vpc_without_nat_gateway(fixtures_dir, vpc):
    vpc["enable_nat_gateway"] = False
    template = load_template(fixtures_dir / "terraform" / "vpc.j2.tf")
    text = render(template, vpc, TargetFormat.HCL).text
    assert "aws_nat_gateway" not in text


# =============================================================================
# Output integrity
# =============================================================================


def test_invalid_yaml_output_is_rejected():
    template = parse("key: [{{ value }}\n", name="broken.yaml")
    with pytest.raises(OutputIntegrityError) as excinfo:
        render(template, {"value": "a"}, TargetFormat.YAML)
    assert excinfo.value.target_format == "yaml"
    assert excinfo.value.template_name == "broken.yaml"
    assert excinfo.value.line is not None


def test_yaml_error_location_points_at_problem():
    with pytest.raises(OutputIntegrityError) as excinfo:
        check_output("name: web\nimage: a: b\n", TargetFormat.YAML, "svc.yaml")
    assert excinfo.value.line == 2
    assert str(excinfo.value).startswith("svc.yaml:2:")


def test_invalid_hcl_output_is_rejected():
    with pytest.raises(OutputIntegrityError) as excinfo:
        check_output('resource "aws_vpc" "eks" {\n  cidr_block = "10.0.0.0/16"\n', TargetFormat.HCL)
    assert excinfo.value.target_format == "hcl"


def test_text_output_is_not_checked():
    check_output("key: [unclosed\n", TargetFormat.TEXT)


def test_validation_can_be_disabled():
    template = parse("key: [{{ value }}\n", name="broken.yaml")
    artifact = render(template, {"value": "a"}, TargetFormat.YAML, validate=False)
    assert artifact.text == "key: [a\n"