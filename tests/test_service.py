import logging

import pytest

from qmd_verify.application.domain import (
    Advisory,
    ComparisonResponse,
    ComparisonSource,
    FileUpload,
    FilterCriteria,
    UploadSource,
)
from qmd_verify.application.exceptions import (
    InputError,
    InvalidFilterError,
    JobFailedError,
)
from qmd_verify.application.service import (
    CompatibilityChecker,
    ReportBuilder,
    validate_device_filters,
)


class FakeUploads(UploadSource):

    def __init__(self, *paths):
        self.uploads = [
            FileUpload(filename=p.rsplit("/", 1)[-1], content=b"x", path=p)
            for p in paths
        ]
        self.calls = []

    def collect(self, targets):
        self.calls.append(list(targets))
        return self.uploads


class FakeSource(ComparisonSource):

    def __init__(self, single=None, batch=None, error=None):
        self.single = single
        self.batch = batch
        self.error = error
        self.calls = []

    def compare(self, upload):
        self.calls.append(("compare", upload.path))
        if self.error:
            raise self.error
        return self.single

    def compare_batch(self, uploads):
        self.calls.append(("compare_batch", [u.path for u in uploads]))
        if self.error:
            raise self.error
        return self.batch


def _response(*compatible, incompatible=()):
    return ComparisonResponse(
        compatible=tuple(compatible),
        incompatible=tuple(incompatible),
        total_checked=len(compatible) + len(incompatible),
    )


@pytest.fixture
def batch(make_result):
    """main depends on toolbar; settings stands alone and fails on rm1."""
    return {
        "main.qmd": _response(
            make_result("rmpp", deps=["base/toolbar.qmd"]),
            make_result("rm2", "3.20.0.92"),
        ),
        "base/toolbar.qmd": _response(
            incompatible=[make_result("rmpp", compatible=False)]
        ),
        "settings.qmd": _response(
            make_result("rmpp"),
            incompatible=[make_result("rm1", compatible=False)],
        ),
    }


def _checker(source, *paths):
    return CompatibilityChecker(source=source, uploads=FakeUploads(*paths))


class TestSingleFile:

    def test_passes_with_only_compatible_rows(self, make_result):
        source = FakeSource(single=_response(make_result("rmpp")))

        outcome = _checker(source, "main.qmd").run(["main.qmd"], FilterCriteria())

        assert source.calls == [("compare", "main.qmd")]
        assert outcome.passed
        [report] = outcome.reports
        assert report.filename == "main.qmd"
        assert report.advisory is None
        assert outcome.batch is None

    def test_fails_with_incompatible_rows(self, sample_response):
        source = FakeSource(single=sample_response)
        outcome = _checker(source, "main.qmd").run(["main.qmd"], FilterCriteria())
        assert not outcome.passed

    def test_filters_can_make_it_pass(self, sample_response):
        source = FakeSource(single=sample_response)
        criteria = FilterCriteria.from_values(devices=["rmpp"])

        outcome = _checker(source, "main.qmd").run(["main.qmd"], criteria)

        assert outcome.passed
        assert outcome.reports[0].response.total_checked == 2
        assert outcome.reports[0].original_total == 6

    def test_no_hashtables_advisory(self):
        source = FakeSource(single=ComparisonResponse())
        outcome = _checker(source, "main.qmd").run(["main.qmd"], FilterCriteria())
        assert outcome.reports[0].advisory is Advisory.NO_HASHTABLES
        assert outcome.passed

    def test_filtered_to_nothing_advisory(self, sample_response):
        source = FakeSource(single=sample_response)
        criteria = FilterCriteria.from_values(versions=["2.0"])

        outcome = _checker(source, "main.qmd").run(["main.qmd"], criteria)

        assert outcome.reports[0].advisory is Advisory.NO_MATCH

    def test_file_filters_do_not_apply(self, sample_response):
        source = FakeSource(single=sample_response)
        criteria = FilterCriteria.from_values(files=["nomatch"], failed_only=True)

        outcome = _checker(source, "main.qmd").run(["main.qmd"], criteria)

        assert len(outcome.reports) == 1


class TestBatch:

    def test_dependencies_are_hidden(self, batch):
        source = FakeSource(batch=batch)
        checker = _checker(source, "main.qmd", "base/toolbar.qmd", "settings.qmd")

        outcome = checker.run(["."], FilterCriteria())

        assert source.calls == [
            ("compare_batch", ["main.qmd", "base/toolbar.qmd", "settings.qmd"])
        ]
        assert [r.filename for r in outcome.reports] == ["main.qmd", "settings.qmd"]
        assert outcome.dependencies == ("base/toolbar.qmd",)
        assert outcome.batch is batch
        assert not outcome.passed

    def test_file_filter(self, batch):
        source = FakeSource(batch=batch)
        criteria = FilterCriteria.from_values(files=["main"])

        outcome = _checker(source, "a.qmd", "b.qmd").run(["."], criteria)

        assert [r.filename for r in outcome.reports] == ["main.qmd"]
        assert outcome.passed

    def test_failed_only(self, batch):
        source = FakeSource(batch=batch)
        criteria = FilterCriteria.from_values(failed_only=True)

        outcome = _checker(source, "a.qmd", "b.qmd").run(["."], criteria)

        assert [r.filename for r in outcome.reports] == ["settings.qmd"]

    def test_failed_only_after_device_filter(self, batch):
        source = FakeSource(batch=batch)
        criteria = FilterCriteria.from_values(devices=["rmpp"], failed_only=True)

        outcome = _checker(source, "a.qmd", "b.qmd").run(["."], criteria)

        assert outcome.reports == ()
        assert outcome.passed

    def test_advisory_does_not_stop_other_files(self, batch):
        source = FakeSource(batch=batch)
        criteria = FilterCriteria.from_values(devices=["rm2"])

        outcome = _checker(source, "a.qmd", "b.qmd").run(["."], criteria)

        advisories = {r.filename: r.advisory for r in outcome.reports}
        assert advisories == {"main.qmd": None, "settings.qmd": Advisory.NO_MATCH}

    def test_cycle_reports_nothing(self, make_result, caplog):
        source = FakeSource(batch={
            "a.qmd": _response(make_result(deps=["b.qmd"])),
            "b.qmd": _response(make_result(deps=["a.qmd"])),
        })

        with caplog.at_level(logging.WARNING):
            outcome = _checker(source, "a.qmd", "b.qmd").run(["."], FilterCriteria())

        assert outcome.reports == ()
        assert outcome.roots_collapsed
        assert outcome.dependencies == ("a.qmd", "b.qmd")
        assert "no root file" in caplog.text


class TestErrors:

    def test_invalid_device_is_rejected_before_collecting(self):
        uploads = FakeUploads("main.qmd")
        checker = CompatibilityChecker(source=FakeSource(), uploads=uploads)
        criteria = FilterCriteria.from_values(devices=["rm3"])

        with pytest.raises(InvalidFilterError, match="invalid device 'rm3'"):
            checker.run(["main.qmd"], criteria)

        assert uploads.calls == []

    def test_no_files_found(self):
        source = FakeSource()
        with pytest.raises(InputError, match="no .qmd files found"):
            _checker(source).run(["empty-dir"], FilterCriteria())
        assert source.calls == []

    def test_job_failure_propagates(self):
        source = FakeSource(error=JobFailedError("corrupt qmd"))
        with pytest.raises(JobFailedError):
            _checker(source, "main.qmd").run(["main.qmd"], FilterCriteria())


@pytest.mark.parametrize("devices", [[], ["rm1"], ["rm1", "rm2", "rmpp", "rmppm"]])
def test_validate_device_filters_accepts_known_devices(devices):
    validate_device_filters(devices)


def test_report_builder_orders_roots_lexically(batch):
    reports = ReportBuilder(FilterCriteria()).batch(
        batch, {"settings.qmd", "main.qmd", "base/toolbar.qmd"}
    )
    assert [r.filename for r in reports] == [
        "base/toolbar.qmd", "main.qmd", "settings.qmd"
    ]
