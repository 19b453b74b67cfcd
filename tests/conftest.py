# Shared pytest fixtures
from __future__ import annotations

import tempfile
from dataclasses import replace
from datetime import date
from pathlib import Path

import pytest

from oci_intake.logging.init import reset_logging
from oci_intake.models.record import Category, NormalizedRecord, Status

HEADER = [
    "NOME DO PACIENTE",
    "DATA DE NASCIMENTO",
    "IDADE",
    "NOME DA MÃE",
    "CPF",
    "TELEFONE",
    "SUBGRUPO DE OCI",
    "DATA DA CONSULTA",
    "COMPARECIMENTO",
    "EXAMES REALIZADOS",
    "STATUS ATUAL",
]


@pytest.fixture(autouse=True)
def _fresh_logging():
    # Handlers bind sys.stdout at setup time; pytest swaps it per test.
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("OCI_SPREADSHEET_ID", raising=False)
        monkeypatch.delenv("OCI_SHEETS_API_KEY", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source:
  spreadsheet_id: 1AbCdEfGhIjKlMnOpQrStUvWxYz
  sheet_name: LIMOEIRO
  range: A1:K500
ingestion:
  due_days: 30
  retain_raw_category: false
storage:
  records_path: ./data/records.json
logs_directory: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "intake.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def today() -> date:
    return date(2025, 2, 1)


@pytest.fixture()
def header() -> list[str]:
    return list(HEADER)


@pytest.fixture()
def sheet_rows(header: list[str]) -> list[list[str]]:
    """Banner row, header row and a mix of data / junk rows."""
    return [
        ["SECRETARIA MUNICIPAL DE SAÚDE - OCI OFTALMOLOGIA"],
        header,
        ["Maria Silva", "15/04/1960", "64", "Ana Silva", "123.456.789-00", "(81) 99999-0000",
         "Glaucoma", "10/01/2025", "SIM", "SIM", "Concluída"],
        [],
        ["João Souza", "01/01/1955", "70", "", "", "81988887777",
         "Catarata", "20/01/2025", "NÃO", "NÃO", "Pendente"],
        ["Nome do paciente", "", "", "", "", "", "", "", "", "", ""],
        ["Ana Lima", "", "", "", "", "", "Retinopatia diabética", "05/02/2025", "x", "", "Aguardando exames"],
    ]


@pytest.fixture()
def record_factory():
    base = NormalizedRecord(
        id="r",
        name="Paciente",
        birth_date="01/01/1970",
        age=55,
        mother_name="",
        tax_id="",
        phone="",
        category=Category.GLAUCOMA,
        visit_date="10/01/2025",
        due_date="09/02/2025",
        status=Status.PENDING,
        row_number=1,
    )
    counter = {"n": 0}

    def make(**overrides) -> NormalizedRecord:
        counter["n"] += 1
        overrides.setdefault("id", f"r-{counter['n']}")
        overrides.setdefault("row_number", counter["n"])
        return replace(base, **overrides)

    return make
