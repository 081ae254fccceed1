#!/usr/bin/env python3
"""
PDF Squad-List Collector
========================

Downloads (or opens) the official squad-list PDF and extracts one raw table
per squad with pdfplumber. The tables are returned untouched apart from
splitting off the header row; all cleaning happens in the normalizer.
"""

import io
import logging
import os
from typing import Callable, List, Optional, Any

import pandas as pd
import pdfplumber
import requests

from src.utils.exceptions import SourceFormatError

RawTable = List[List[Optional[str]]]


def extract_pdf_tables(content: bytes) -> List[RawTable]:
    """
    Extract every table on every page of a PDF document.

    The document handle is closed as soon as the cells are read.

    Args:
        content: Raw PDF bytes

    Returns:
        List of tables, each a list of rows of text cells (header row first)
    """
    tables: List[RawTable] = []
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        for page in pdf.pages:
            for table in page.extract_tables() or []:
                # Skip empty detections
                if table and any(any(cell for cell in row) for row in table):
                    tables.append(table)
    return tables


class PDFSquadCollector:
    """
    Loads the raw squad tables from the squad-list PDF.

    The table extraction engine is injectable so the loader can be exercised
    without a real document; the default uses pdfplumber.
    """

    def __init__(self, config, extractor: Callable[[bytes], List[RawTable]] = None):
        """Initialize the PDF collector."""
        self.config = config
        self.logger = logging.getLogger('PDFSquadCollector')
        self.extractor = extractor or extract_pdf_tables

    def fetch_document(self, locator: str) -> bytes:
        """
        Read the PDF from a URL or a local path.

        Args:
            locator: ``http(s)://`` URL or filesystem path

        Returns:
            PDF content as bytes
        """
        if locator.startswith(('http://', 'https://')):
            self.logger.debug(f"Fetching squad-list PDF: {locator}")
            try:
                with requests.get(locator, headers=self.config.headers,
                                  timeout=self.config.request_timeout) as response:
                    response.raise_for_status()
                    content = response.content
            except requests.exceptions.RequestException as e:
                self.logger.error(f"Request error fetching squad-list PDF {locator}: {e}")
                raise
        else:
            if not os.path.exists(locator):
                raise FileNotFoundError(f"Squad-list PDF not found: {locator}")
            with open(locator, 'rb') as f:
                content = f.read()

        self.logger.debug(f"Read {len(content)} bytes from {locator}")
        return content

    def load_tables(self, locator: str) -> List[pd.DataFrame]:
        """
        Fetch the PDF and return its squad tables.

        Args:
            locator: URL or path of the squad-list PDF

        Returns:
            One DataFrame per squad table, all with identical headers
        """
        content = self.fetch_document(locator)
        raw_tables = self.extractor(content)
        tables = self.tables_from_raw(raw_tables)
        self.logger.info(f"Extracted {len(tables)} squad tables "
                         f"({sum(len(t) for t in tables)} rows) from {locator}")
        return tables

    def tables_from_raw(self, raw_tables: List[RawTable]) -> List[pd.DataFrame]:
        """
        Split the header row off each raw table and check the headers agree.

        Args:
            raw_tables: Tables as returned by the extraction engine

        Returns:
            List of DataFrames with the header row as column labels

        Raises:
            SourceFormatError: No tables, a table without a header, or headers
                that differ between tables
        """
        if not raw_tables:
            raise SourceFormatError("PDF extraction returned no tables")

        frames: List[pd.DataFrame] = []
        reference_header: Optional[List[str]] = None
        for index, table in enumerate(raw_tables):
            if not table:
                raise SourceFormatError(f"Table {index} is empty")

            header = [_header_label(cell) for cell in table[0]]
            if reference_header is None:
                reference_header = header
            elif header != reference_header:
                raise SourceFormatError(
                    f"Table {index} header {header} does not match first table header {reference_header}"
                )

            rows = [list(row) for row in table[1:]]
            ragged = [i for i, row in enumerate(rows) if len(row) != len(header)]
            if ragged:
                raise SourceFormatError(
                    f"Table {index} has {len(ragged)} rows whose width differs from its "
                    f"{len(header)}-column header"
                )
            frames.append(pd.DataFrame(rows, columns=header))

        return frames


def _header_label(cell: Any) -> str:
    # pdfplumber breaks long headers over several lines
    return ' '.join(str(cell or '').split())
