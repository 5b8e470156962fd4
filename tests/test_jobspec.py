import json
import os

import pytest

from localsvc.errors import JobSpecError
from localsvc.jobspec import format_duration, parse_duration, parse_file, parse_job

EXAMPLES = os.path.join(os.path.dirname(os.path.dirname(__file__)), "examples")


@pytest.mark.parametrize(
    "raw,ns",
    [
        ("10s", 10_000_000_000),
        ("1m30s", 90_000_000_000),
        ("250ms", 250_000_000),
        ("1.5s", 1_500_000_000),
        ("2h", 7_200_000_000_000),
        ("0", 0),
    ],
)
def test_parse_duration(raw, ns):
    assert parse_duration(raw) == ns


@pytest.mark.parametrize("raw", ["", "10", "ten seconds", "5x", "1m 30s"])
def test_parse_duration_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_duration(raw)


@pytest.mark.parametrize(
    "ns,text",
    [
        (0, "0s"),
        (10_000_000_000, "10s"),
        (90_000_000_000, "1m30s"),
        (120_000_000_000, "2m0s"),
        (3_600_000_000_000, "1h0m0s"),
        (1_500_000_000, "1.5s"),
        (250_000_000, "250ms"),
        (1_500_000, "1.5ms"),
        (2_000, "2µs"),
        (42, "42ns"),
    ],
)
def test_format_duration_matches_go(ns, text):
    assert format_duration(ns) == text


def test_nomad_json_job(tmp_path):
    job = parse_file(os.path.join(EXAMPLES, "nomad-jobspec.json"))

    assert job.label == "example"
    [group] = job.task_groups
    [task] = group.tasks
    [svc] = task.services
    assert (group.name, task.name, svc.name) == ("web", "frontend", "web")
    assert svc.tags == ["frontend", "v1"]
    assert svc.port_label == "8080"

    [check] = svc.checks
    assert check.id == "web-healthz"
    assert check.type == "http"
    assert check.path == "/healthz"
    assert check.interval == "10s"
    assert check.timeout == "2s"
    assert check.method == "GET"


def test_yaml_job_with_snake_case_keys():
    job = parse_file(os.path.join(EXAMPLES, "nomad-jobspec.tmpl"))

    assert [g.name for g in job.task_groups] == ["web", "cache"]
    web = job.task_groups[0].tasks[0]
    assert [s.name for s in web.services] == ["web", "web-admin"]
    assert web.services[1].port_label == "admin"
    assert web.services[0].checks[0].interval == "10s"


def test_numeric_port_labels_become_strings():
    job = parse_job({"task_groups": [{"name": "g", "tasks": [{"name": "t", "services": [
        {"name": "api", "port": 9000, "checks": [{"name": "c", "type": "http", "port": 9000}]},
    ]}]}]})
    svc = job.task_groups[0].tasks[0].services[0]
    assert svc.port_label == "9000"
    assert svc.checks[0].port_label == "9000"
    assert svc.checks[0].interval == "0s"


def test_nomad_nulls_are_empty_lists():
    job = parse_job({"Job": {"TaskGroups": [{"Name": "g", "Tasks": [
        {"Name": "t", "Services": [{"Name": "api", "PortLabel": "80", "Tags": None, "Checks": None}]},
        {"Name": "u", "Services": None},
    ]}]}})
    tasks = job.task_groups[0].tasks
    assert tasks[0].services[0].tags == []
    assert tasks[0].services[0].checks == []
    assert tasks[1].services == []


def test_missing_file_is_jobspec_error(tmp_path):
    with pytest.raises(JobSpecError):
        parse_file(tmp_path / "nope.tmpl")


def test_unparsable_file_is_jobspec_error(tmp_path):
    p = tmp_path / "bad.tmpl"
    p.write_text("job: [unclosed", encoding="utf-8")
    with pytest.raises(JobSpecError):
        parse_file(p)


def test_invalid_structure_is_jobspec_error(tmp_path):
    p = tmp_path / "bad.json"
    p.write_text(json.dumps({"Job": {"TaskGroups": [{"Tasks": []}]}}), encoding="utf-8")
    with pytest.raises(JobSpecError):
        parse_file(p)


def test_non_mapping_document_is_jobspec_error():
    with pytest.raises(JobSpecError):
        parse_job(["not", "a", "job"])


def test_bad_interval_is_jobspec_error():
    with pytest.raises(JobSpecError):
        parse_job({"task_groups": [{"name": "g", "tasks": [{"name": "t", "services": [
            {"name": "api", "port_label": "80", "checks": [{"name": "c", "interval": "soon"}]},
        ]}]}]})


def test_undecodable_file_is_jobspec_error(tmp_path):
    p = tmp_path / "binary.tmpl"
    p.write_bytes(b"\xff\xfe\x00garbage")
    with pytest.raises(JobSpecError, match="Cannot read job file"):
        parse_file(p)
