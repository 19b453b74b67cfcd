#!/usr/bin/env python3
"""Synthetic OCI intake sheet generator.

Writes a sheet laid out like the production one, for load checks and
demos of the CLI:
- Row 1: organizational banner
- Row 2: header row
- Row 3+: patient rows, with a share of messy cells (ISO dates, free-text
  statuses, blank names) so every repair path of the pipeline is exercised

The output format follows the file suffix (.csv or .xlsx).
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

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

FIRST_NAMES = ["Maria", "José", "Ana", "João", "Francisca", "Antônio", "Luiza", "Carlos", "Paula", "Pedro"]
LAST_NAMES = ["Silva", "Souza", "Oliveira", "Santos", "Lima", "Pereira", "Costa", "Almeida"]
CATEGORIES = [
    "Avaliação de retinopatia diabética",
    "Glaucoma",
    "catarata",
    "Estrabismo",
    "Pterígio",
    "Outros",
    "consulta geral",
]
STATUSES = ["Pendente", "Em andamento", "Aguardando exames", "Concluída", "Cancelada", "concluido", "???"]


def generate_intake_frame(rows: int, seed: int = 42, messy_share: float = 0.05) -> pd.DataFrame:
    """Synthetic patient rows (no banner / header) as a string DataFrame.

    Args:
        rows: Number of patient rows
        seed: Random seed for reproducible data
        messy_share: Fraction of rows given an unparseable or odd cell
    """
    rng = np.random.default_rng(seed)

    births = pd.Timestamp("1940-01-01") + pd.to_timedelta(rng.integers(0, 365 * 70, rows), unit="D")
    visits = pd.Timestamp("2024-01-01") + pd.to_timedelta(rng.integers(0, 540, rows), unit="D")
    ages = (visits.year - births.year).astype(int)

    first = rng.choice(FIRST_NAMES, rows)
    last = rng.choice(LAST_NAMES, rows)
    has_cpf = rng.random(rows) < 0.6
    cpf_digits = rng.integers(10**10, 10**11 - 1, rows)

    df = pd.DataFrame(
        {
            HEADER[0]: [f"{f} {l}" for f, l in zip(first, last)],
            HEADER[1]: births.strftime("%d/%m/%Y"),
            HEADER[2]: ages.astype(str),
            HEADER[3]: [f"{m} {l}" for m, l in zip(rng.choice(FIRST_NAMES, rows), last)],
            HEADER[4]: [str(d) if c else "" for d, c in zip(cpf_digits, has_cpf)],
            HEADER[5]: [f"(81) 9{n:04d}-{k:04d}" for n, k in zip(rng.integers(0, 10**4, rows), rng.integers(0, 10**4, rows))],
            HEADER[6]: rng.choice(CATEGORIES, rows),
            HEADER[7]: visits.strftime("%d/%m/%Y"),
            HEADER[8]: rng.choice(["SIM", "NÃO", "x", ""], rows),
            HEADER[9]: rng.choice(["SIM", "NÃO", ""], rows),
            HEADER[10]: rng.choice(STATUSES, rows),
        }
    )

    messy = np.flatnonzero(rng.random(rows) < messy_share)
    for n, i in enumerate(messy):
        kind = n % 4
        if kind == 0:
            df.iat[i, 7] = visits[i].strftime("%Y-%m-%d")
        elif kind == 1:
            df.iat[i, 1] = "sem data"
        elif kind == 2:
            df.iat[i, 2] = f"{ages[i]} anos"
        else:
            df.iat[i, 0] = ""
    return df


def intake_sheet_rows(rows: int, seed: int = 42, banner: str = "SECRETARIA MUNICIPAL DE SAÚDE") -> list[list[str]]:
    """Banner row, header row and patient rows as a 2-D list of text."""
    df = generate_intake_frame(rows, seed)
    return [[banner], list(HEADER)] + df.values.tolist()


def write_intake_sheet(output_path: Path, rows: int, seed: int = 42, sheet_name: str = "LIMOEIRO") -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    sheet = pd.DataFrame(intake_sheet_rows(rows, seed))
    if output_path.suffix.lower() == ".csv":
        sheet.to_csv(output_path, header=False, index=False, encoding="utf-8")
    else:
        with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
            sheet.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    print(f"Created intake sheet: {output_path}")
    print(f"  Patient rows: {rows:,} (+ banner and header)")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic OCI intake sheet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/sample.csv --rows 500
  %(prog)s data/large.xlsx --rows 20000 --seed 7
        """,
    )
    parser.add_argument("output", type=Path, help="Output .csv or .xlsx path")
    parser.add_argument("--rows", type=int, default=1_000, help="Number of patient rows (default: 1,000)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--sheet", default="LIMOEIRO", help="Sheet name for .xlsx output")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if args.output.suffix.lower() not in (".csv", ".xlsx"):
        print("Error: output must end in .csv or .xlsx", file=sys.stderr)
        return 1

    write_intake_sheet(args.output, args.rows, args.seed, args.sheet)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
