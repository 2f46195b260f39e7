# stockroom/services/csv_handler.py
"""
Bulk import and export of products as CSV.

Import runs every row through ``ProductService.create_product``, so it is
bound by the same validation as the API. Rows are committed one at a time.
A bad row is counted as skipped and never aborts the rest of the batch.
"""

import logging
import math
import os
from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.exceptions import BaseServiceError, InvalidArgumentError
from stockroom.models.product import Product, EXPORT_FIELDS
from stockroom.services.product_service import ProductService

logger = logging.getLogger(__name__)

OPTIONAL_TEXT_FIELDS = ('unit', 'category', 'brand', 'status', 'image')


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def coerce_stock(value: Any) -> int:
    """Best-effort integer parse of an imported stock cell; anything unparseable is 0."""
    text = _text(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return 0


def remove_upload(file_path: str) -> None:
    """Delete an uploaded file; a file that is already gone is fine."""
    try:
        os.remove(file_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove uploaded file {file_path}: {str(e)}")


class CSVHandler:
    """
    Handles CSV file processing and database operations for product imports
    and exports.

    Attributes:
        session (AsyncSession): SQLAlchemy async session for database operations.
        product_service (ProductService): Write path shared with the API routes.
    """

    def __init__(self, session: AsyncSession, product_service: ProductService = None):
        self.session = session
        self.product_service = product_service or ProductService(session)

    async def import_rows(self, rows: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Import already-parsed rows.

        Returns:
            {"added": int, "skipped": int, "duplicates": [{"name", "existingId"}]}

        Raises:
            InvalidArgumentError: If there are no rows at all
        """
        if not rows:
            raise InvalidArgumentError("CSV file is empty")

        added = 0
        skipped = 0
        duplicates: List[Dict[str, Any]] = []

        for index, row in enumerate(rows):
            name = _text(row.get('name'))
            stock = row.get('stock')

            if not name or not _text(stock).strip():
                skipped += 1
                continue

            try:
                existing = await self.product_service.find_by_name_insensitive(name)
            except SQLAlchemyError as e:
                logger.error(f"Error checking duplicate for row {index}: {str(e)}")
                skipped += 1
                continue

            if existing is not None:
                duplicates.append({"name": name, "existingId": existing.id})
                skipped += 1
                continue

            product_data = {field: _text(row.get(field)) for field in OPTIONAL_TEXT_FIELDS}
            product_data['name'] = name
            product_data['stock'] = coerce_stock(stock)

            try:
                await self.product_service.create_product(product_data)
                added += 1
            except BaseServiceError as e:
                logger.warning(f"Error inserting product from row {index}: {str(e)}")
                skipped += 1

        logger.info(f"CSV import finished: {added} added, {skipped} skipped, {len(duplicates)} duplicates")
        return {"added": added, "skipped": skipped, "duplicates": duplicates}

    async def import_file(self, file_path: str) -> Dict[str, Any]:
        """
        Parse a CSV file and import its rows.

        The file is removed when processing ends, whatever the outcome.

        Raises:
            InvalidArgumentError: If the file is empty or cannot be parsed
        """
        try:
            try:
                df = pd.read_csv(file_path, dtype=str, keep_default_na=False, encoding='utf-8-sig')
            except pd.errors.EmptyDataError:
                raise InvalidArgumentError("CSV file is empty")
            except (pd.errors.ParserError, UnicodeDecodeError) as e:
                raise InvalidArgumentError(f"Error parsing CSV file: {str(e)}")

            df.columns = [str(column).strip() for column in df.columns]
            rows = df.to_dict(orient='records')
            return await self.import_rows(rows)
        finally:
            remove_upload(file_path)

    async def export_products(self) -> str:
        """
        Render every product as CSV text.

        The header is always ``id,name,unit,category,brand,stock,status,image``.
        Values containing a comma, quote or newline are quoted with inner
        quotes doubled.
        """
        result = await self.session.execute(select(Product).order_by(Product.id))
        records = [
            {field: getattr(product, field) for field in EXPORT_FIELDS}
            for product in result.scalars().all()
        ]

        df = pd.DataFrame(records, columns=EXPORT_FIELDS)
        # Nullable text columns export as empty cells
        df = df.fillna("")
        return df.to_csv(index=False, lineterminator="\n")
