"""Funções auxiliares para ler CEPs de planilhas Excel e gravar os endereços."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TypedDict

from openpyxl import load_workbook
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("excel_io")

DEFAULT_MAPPING: dict[str, str] = {
    "cep": "B",
    "logradouro": "C",
    "complemento": "D",
    "bairro": "E",
    "localidade": "F",
    "uf": "G",
    "ibge": "H",
    "ddd": "I",
    "provider": "J",
    "status": "K",
}


class RowData(TypedDict):
    """Uma linha lida da planilha."""

    index: int
    cep: str


_WORKBOOK_CACHE: dict[str, Workbook] = {}


def _get_or_load_workbook(excel_path: str) -> Workbook:
    """Devolve a pasta de trabalho em cache, carregando-a na primeira vez."""

    workbook = _WORKBOOK_CACHE.get(excel_path)
    if workbook is None:
        LOGGER.debug("Carregando pasta de trabalho: %s", excel_path)
        workbook = load_workbook(excel_path)
        _WORKBOOK_CACHE[excel_path] = workbook
    return workbook


def normalise_column(column: str | None) -> str | None:
    if column is None:
        return None
    column = column.strip().upper()
    if not column:
        return None
    if not column.isalpha() or not column.isascii():
        raise ValueError(f"Coluna invalida: {column}")
    return column


def _cell_to_cep(value: object) -> str | None:
    # Excel drops leading zeros of numeric CEPs (01001000 -> 1001000).
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value).zfill(8) if 0 <= value < 10**8 else str(value)
    value_str = str(value).strip()
    return value_str or None


def _read_cep(worksheet: Worksheet, column: str, row_index: int) -> str | None:
    return _cell_to_cep(worksheet[f"{column}{row_index}"].value)


def _find_last_row(worksheet: Worksheet, column: str, start_row: int) -> int:
    for row_idx in range(worksheet.max_row, start_row - 1, -1):
        if _read_cep(worksheet, column, row_idx) is not None:
            return row_idx
    return start_row - 1


def _get_worksheet(workbook: Workbook, sheet: str | None) -> Worksheet:
    if sheet:
        try:
            return workbook[sheet]
        except KeyError as exc:
            raise ValueError(f"Planilha '{sheet}' nao encontrada") from exc
    return workbook.active


def iter_rows(
    excel_path: str,
    sheet: str | None,
    start: int,
    end: int | None,
    cep_col: str,
) -> Iterator[RowData]:
    """Lê as linhas com CEP preenchido, de *start* até *end* (inclusive)."""

    column = normalise_column(cep_col)
    if not column:
        raise ValueError("A coluna de CEP deve ser informada")

    workbook = _get_or_load_workbook(excel_path)
    worksheet = _get_worksheet(workbook, sheet)
    stop = end if end is not None else _find_last_row(worksheet, column, start)

    LOGGER.info("Lendo linhas %s-%s da planilha '%s' (%s)", start, stop, sheet, excel_path)

    def _generator() -> Iterator[RowData]:
        yielded = 0
        for row_idx in range(start, stop + 1):
            cep = _read_cep(worksheet, column, row_idx)
            if cep is None:
                continue
            yielded += 1
            yield RowData(index=row_idx, cep=cep)

        LOGGER.info("Linhas processadas na planilha '%s' (%s): %s", sheet, excel_path, yielded)

    return _generator()


def write_result(
    excel_path: str,
    sheet: str | None,
    row_index: int,
    record: Mapping[str, object | None],
    mapping: Mapping[str, str],
) -> None:
    """Grava os campos de *record* nas colunas mapeadas."""

    workbook = _get_or_load_workbook(excel_path)
    worksheet = _get_worksheet(workbook, sheet)

    LOGGER.debug("Gravando resultado da linha %s na planilha '%s'", row_index, sheet)

    for key, column in mapping.items():
        column_letter = normalise_column(column)
        if not column_letter or key not in record:
            continue
        value = record.get(key)
        worksheet[f"{column_letter}{row_index}"] = "" if value is None else str(value)


def save(excel_path: str) -> None:
    """Persiste as alterações em disco."""

    workbook = _WORKBOOK_CACHE.get(excel_path)
    if workbook is None:
        LOGGER.debug("Nenhuma pasta de trabalho em cache para: %s", excel_path)
        return
    LOGGER.info("Salvando pasta de trabalho: %s", excel_path)
    workbook.save(excel_path)


def reset() -> None:
    """Limpa o cache de pastas de trabalho (principalmente para testes)."""

    LOGGER.debug("Limpando cache de pastas de trabalho")
    _WORKBOOK_CACHE.clear()


__all__ = [
    "DEFAULT_MAPPING",
    "RowData",
    "iter_rows",
    "normalise_column",
    "reset",
    "save",
    "write_result",
]
