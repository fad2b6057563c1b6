"""
手机验证码接口与健康检查接口测试
"""

import pytest


@pytest.mark.asyncio
class TestOtpApi:

    async def test_send_and_verify(self, api_client, memory_redis):
        sent = await api_client.post("/auth/otp/send", json={"phone": "0712345678"})

        assert sent.status_code == 200
        assert sent.json()["phone"] == "+254****5678"
        code = memory_redis.data["otp:code:+254712345678"]

        verified = await api_client.post("/auth/otp/verify", json={"phone": "0712345678", "otp": code})

        assert verified.status_code == 200
        assert verified.json()["verified"] is True

    async def test_verify_rejects_malformed_code(self, api_client):
        response = await api_client.post("/auth/otp/verify", json={"phone": "0712345678", "otp": "12ab"})

        assert response.status_code == 422

    async def test_verify_rejects_non_ascii_digits(self, api_client, memory_redis):
        await api_client.post("/auth/otp/send", json={"phone": "0712345678"})

        response = await api_client.post(
            "/auth/otp/verify",
            json={"phone": "0712345678", "otp": "١٢٣٤٥٦"}
        )

        assert response.status_code == 422
        assert "otp:code:+254712345678" in memory_redis.data

    async def test_send_rate_limited(self, api_client):
        for _ in range(3):
            await api_client.post("/auth/otp/send", json={"phone": "0712345678"})

        response = await api_client.post("/auth/otp/send", json={"phone": "0712345678"})

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "RATE_LIMITED"

    async def test_send_invalid_phone(self, api_client):
        response = await api_client.post("/auth/otp/send", json={"phone": "+1 415 555 0100"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_PHONE"


@pytest.mark.asyncio
class TestHealthApi:

    async def test_health(self, api_client):
        response = await api_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_database_health_without_connections(self, api_client):
        """测试环境未初始化连接池时返回503"""
        response = await api_client.get("/health/database")

        assert response.status_code == 503
        assert response.json()["overall"] is False
