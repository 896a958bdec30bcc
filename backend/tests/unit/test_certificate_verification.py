"""Tests for business registration certificate verification.

The LLM is replaced by MockLLMProvider; the service's comparison and
failure mapping are what is under test.
"""

import json

import pytest

from profile_builder.providers.errors import RateLimitError
from profile_builder.providers.llm.base import TaskType
from profile_builder.providers.llm.mock_adapter import MockLLMProvider
from profile_builder.services.certificate_verification import (
    ANALYSIS_FAILED_MESSAGE,
    SERVICE_FAILED_MESSAGE,
    UNSUPPORTED_TYPE_MESSAGE,
    VERIFIED_MESSAGE,
    CertificateVerificationService,
    normalize_for_comparison,
)
from tests.conftest import PDF_BYTES

_TASK = TaskType.CERTIFICATE_VERIFICATION


def _service(response: dict | str) -> tuple[CertificateVerificationService, MockLLMProvider]:
    provider = MockLLMProvider()
    content = response if isinstance(response, str) else json.dumps(response)
    provider.set_response(_TASK, content)
    return CertificateVerificationService(provider), provider


async def _verify(service, name="Acme Holdings", number="PV-12345", mime="application/pdf"):
    return await service.verify(PDF_BYTES, mime, name, number)


class TestNormalizeForComparison:
    """Tests for value normalization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("  Acme   Holdings ", "acme holdings"),
            ("PV-12345", "pv-12345"),
            ("Acme\n\tHoldings", "acme holdings"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_for_comparison(raw) == expected


class TestVerify:
    """Tests for CertificateVerificationService.verify."""

    @pytest.mark.asyncio
    async def test_both_match_is_verified_high(self):
        service, provider = _service(
            {"companyName": "ACME  holdings", "registrationNumber": "pv-12345"}
        )

        verdict = await _verify(service)

        assert verdict.verified is True
        assert verdict.confidence == "high"
        assert verdict.message == VERIFIED_MESSAGE
        assert verdict.extracted_company_name == "ACME  holdings"
        provider.assert_called_with_task(_TASK)

    @pytest.mark.asyncio
    async def test_certificate_sent_as_attachment_in_json_mode(self):
        service, provider = _service(
            {"companyName": "Acme Holdings", "registrationNumber": "PV-12345"}
        )

        await _verify(service)

        call = provider.calls[0]
        assert call["kwargs"]["json_mode"] is True
        attachment = call["messages"][-1].attachment
        assert attachment.data == PDF_BYTES
        assert attachment.mime_type == "application/pdf"

    @pytest.mark.asyncio
    async def test_one_match_is_medium_and_unverified(self):
        service, _ = _service({"companyName": "Acme Holdings", "registrationNumber": "PV-999"})

        verdict = await _verify(service)

        assert verdict.verified is False
        assert verdict.confidence == "medium"
        assert '- Found: "Acme Holdings" / "PV-999"' in verdict.message

    @pytest.mark.asyncio
    async def test_nothing_found_is_low(self):
        service, _ = _service({"companyName": None, "registrationNumber": None})

        verdict = await _verify(service)

        assert verdict.verified is False
        assert verdict.confidence == "low"
        assert '- Found: "Not found" / "Not found"' in verdict.message
        assert '- Provided: "Acme Holdings" / "PV-12345"' in verdict.message

    @pytest.mark.asyncio
    async def test_empty_declared_value_never_matches_missing_extraction(self):
        """Blank on both sides is not a match."""
        service, _ = _service({"companyName": "", "registrationNumber": ""})

        verdict = await _verify(service, name="", number="")

        assert verdict.verified is False

    @pytest.mark.asyncio
    async def test_fenced_json_response_accepted(self):
        payload = json.dumps({"companyName": "Acme Holdings", "registrationNumber": "PV-12345"})
        service, _ = _service(f"```json\n{payload}\n```")

        verdict = await _verify(service)

        assert verdict.verified is True

    @pytest.mark.asyncio
    async def test_unsupported_type_not_sent(self):
        service, provider = _service({})

        verdict = await _verify(service, mime="application/msword")

        assert verdict.verified is False
        assert verdict.message == UNSUPPORTED_TYPE_MESSAGE
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_unparseable_response_is_analysis_failure(self):
        service, _ = _service("I could not read the document")

        verdict = await _verify(service)

        assert verdict.verified is False
        assert verdict.message == ANALYSIS_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_non_object_response_is_analysis_failure(self):
        service, _ = _service("[1, 2]")

        verdict = await _verify(service)

        assert verdict.message == ANALYSIS_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_provider_error_is_service_failure(self):
        provider = MockLLMProvider()
        provider.set_error(_TASK, RateLimitError("quota exceeded"))
        service = CertificateVerificationService(provider)

        verdict = await _verify(service)

        assert verdict.verified is False
        assert verdict.message == SERVICE_FAILED_MESSAGE
