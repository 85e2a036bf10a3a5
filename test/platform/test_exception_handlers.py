from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel
import pytest

from src.platform.exception.exception_handlers import register_exception_handlers
from src.service.ticketing.domain.errors import (
    InsufficientTicketsError,
    PaymentNotFoundError,
    ShowDatePassedError,
)


class Body(BaseModel):
    quantity: int


def build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get('/not-found')
    async def not_found() -> None:
        raise PaymentNotFoundError()

    @app.get('/conflict')
    async def conflict() -> None:
        raise InsufficientTicketsError(10)

    @app.get('/domain')
    async def domain() -> None:
        raise ShowDatePassedError(12)

    @app.get('/value')
    async def value() -> None:
        raise ValueError('quantity must be positive')

    @app.post('/validate')
    async def validate(body: Body) -> dict:
        return {'quantity': body.quantity}

    @app.get('/boom')
    async def boom() -> None:
        raise RuntimeError('unexpected')

    return app


@pytest.fixture
def client() -> TestClient:
    return TestClient(build_app(), raise_server_exceptions=False)


@pytest.mark.unit
class TestExceptionHandlers:
    def test_not_found(self, client: TestClient) -> None:
        response = client.get('/not-found')

        assert response.status_code == 404
        assert response.json() == {'detail': 'payment not found'}

    def test_conflict(self, client: TestClient) -> None:
        response = client.get('/conflict')

        assert response.status_code == 409
        assert response.json() == {'detail': 'insufficient tickets | event detail ID: 10'}

    def test_domain_error_is_a_bad_request(self, client: TestClient) -> None:
        response = client.get('/domain')

        assert response.status_code == 400
        assert 'show date has already passed' in response.json()['detail']

    def test_value_error(self, client: TestClient) -> None:
        response = client.get('/value')

        assert response.status_code == 400
        assert response.json() == {'detail': 'quantity must be positive'}

    def test_request_validation_is_a_bad_request(self, client: TestClient) -> None:
        response = client.post('/validate', json={'quantity': 'many'})

        assert response.status_code == 400

    def test_unexpected_error_is_hidden(self, client: TestClient) -> None:
        response = client.get('/boom')

        assert response.status_code == 500
        assert response.json() == {'detail': 'Internal server error'}
