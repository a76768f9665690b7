import os
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# ---- テスト用DB/アップロード先（app import より前に設定）----
_TMP_DIR = Path(tempfile.mkdtemp(prefix="inventory_test_"))
os.environ["APP_DB_PATH"] = str(_TMP_DIR / "test_inventory.db")
os.environ["APP_UPLOAD_DIR"] = str(_TMP_DIR / "uploads")
os.environ["MAIL_ENABLED"] = "false"
os.environ["MAIL_RETRY_BACKOFF_SECONDS"] = "0"


class RecordingMailer:
    def __init__(self):
        self.sent = []
        self.fail_times = 0

    def send(self, to, subject, html):
        from errors import UpstreamError

        if self.fail_times > 0:
            self.fail_times -= 1
            raise UpstreamError("smtp unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return True


@pytest.fixture(scope="session")
def app_module():
    import main

    return main


@pytest.fixture()
def mailer():
    return RecordingMailer()


@pytest.fixture()
def client(app_module, mailer):
    from dependencies import get_mailer

    app_module.app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app_module.app) as c:
        yield c
    app_module.app.dependency_overrides.clear()


@pytest.fixture()
def db_session(app_module):
    from db import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_db(app_module, db_session):
    # 各テスト前にテーブルを全消し（順序注意：items -> purchases -> others）
    from sqlalchemy import delete
    from orm import (
        AssetORM,
        AssetRequestORM,
        BrandORM,
        CategoryORM,
        PurchaseItemORM,
        PurchaseORM,
        SubcategoryORM,
        UserORM,
        VendorORM,
    )

    for table in (
        PurchaseItemORM,
        PurchaseORM,
        AssetRequestORM,
        AssetORM,
        VendorORM,
        UserORM,
        CategoryORM,
        SubcategoryORM,
        BrandORM,
    ):
        db_session.execute(delete(table))
    db_session.commit()
    yield


@pytest.fixture()
def make_asset(client):
    def _make(name="Printer Paper", quantity=0, **extra):
        body = {"name": name, "quantity": quantity, **extra}
        r = client.post("/assets", json=body)
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture()
def make_user(client):
    def _make(name="Alice", email="alice@example.com", **extra):
        r = client.post("/users", data={"name": name, "email": email, **extra})
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture()
def asset_quantity(client):
    def _quantity(asset_id):
        r = client.get(f"/assets/{asset_id}")
        assert r.status_code == 200, r.text
        return r.json()["quantity"]

    return _quantity
