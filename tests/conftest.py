import pytest
from fastapi.testclient import TestClient

from hf_registry.main import create_app
from hf_registry.schemas.patient import Patient
from hf_registry.services.patient_store import InMemoryPatientStore
from hf_registry.services.registry_service import PatientRegistry


def build_patient(**overrides) -> Patient:
    """
    Minimal valid OPD patient. Keyword overrides use attribute names;
    nested models may be given as dicts.
    """
    data = {
        "hn": "HN66001",
        "first_name": "ผู้ป่วย",
        "last_name": "ทดสอบ",
        "age": 65,
        "insurance": "บัตรทอง (UC)",
        "address": {
            "number": "12/1",
            "sub_district": "ในเมือง",
            "district": "เมือง",
            "province": "ลำพูน",
        },
        "status": "OPD",
        "lvef": 35,
    }
    data.update(overrides)
    return Patient.model_validate(data)


def build_ipd_patient(**overrides) -> Patient:
    data = {"status": "IPD", "an": "AN1", "etiology": "Ischemic"}
    data.update(overrides)
    return build_patient(**data)


@pytest.fixture
def make_patient():
    return build_patient


@pytest.fixture
def make_ipd_patient():
    return build_ipd_patient


@pytest.fixture
def store():
    return InMemoryPatientStore()


@pytest.fixture
def registry(store):
    return PatientRegistry(store)


@pytest.fixture
def client(registry):
    app = create_app(registry)
    with TestClient(app) as c:
        yield c
