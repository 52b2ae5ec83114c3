import pytest

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_card_number_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "card": "paid with 4111 1111 1111 1111"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "4111 1111 1111 1111" not in result["card"]
        assert "***MASKED***" in result["card"]

    def test_signature_key_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "md5sig": "A1B2C3D4E5F60718293A4B5C6D7E8F90"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["md5sig"] == "***MASKED***"

    def test_signature_assignment_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "body": "order_id=ORD-1&md5sig=A1B2C3D4"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "A1B2C3D4" not in result["body"]
        assert "ORD-1" in result["body"]

    def test_password_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    def test_non_sensitive_data_unchanged(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "order.placed", "order_number": "ORD-20260101-ABC123"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_number"] == "ORD-20260101-ABC123"
        assert result["event"] == "order.placed"
