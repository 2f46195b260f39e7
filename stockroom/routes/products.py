# stockroom/routes/products.py
import os
import logging
from datetime import datetime
from typing import Optional

import aiofiles
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.config import get_settings
from stockroom.core.exceptions import (
    ConflictError,
    DatabaseError,
    InvalidArgumentError,
    ProductNotFoundError,
)
from stockroom.dependencies import get_db
from stockroom.schemas.inventory_history import InventoryHistoryRead
from stockroom.schemas.product import ProductCreate, ProductSummary, ProductUpdate
from stockroom.services.csv_handler import CSVHandler, remove_upload
from stockroom.services.inventory_history_service import InventoryHistoryService
from stockroom.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])

logger = logging.getLogger(__name__)


def _invalid(e: InvalidArgumentError) -> HTTPException:
    detail = {"message": e.message, "errors": e.errors} if e.errors else e.message
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _server_error(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


def _sanitize_filename(filename: Optional[str]) -> str:
    name = os.path.basename(filename or "upload.csv")
    return "".join(c if c.isalnum() or c in "._-" else "_" for c in name) or "upload.csv"


def upload_path(upload_file: UploadFile) -> str:
    """Pick a unique path under UPLOAD_DIR for an incoming file"""
    upload_dir = get_settings().UPLOAD_DIR
    os.makedirs(upload_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filename = f"{timestamp}_{_sanitize_filename(upload_file.filename)}"
    return os.path.join(upload_dir, filename)


async def save_upload_file(upload_file: UploadFile, filepath: str) -> None:
    """Write an uploaded file to filepath"""
    async with aiofiles.open(filepath, 'wb') as out_file:
        content = await upload_file.read()
        await out_file.write(content)


@router.get("/search")
async def search_products(name: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    try:
        products = await ProductService(db).search_products(name)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except DatabaseError as e:
        raise _server_error(e)
    return {"products": products, "count": len(products)}


@router.get("/export")
async def export_products(db: AsyncSession = Depends(get_db)):
    csv_data = await CSVHandler(db).export_products()
    return Response(
        content=csv_data,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="products.csv"'}
    )


@router.post("/import")
async def import_products(
    csvFile: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db)
):
    if csvFile is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    file_path = upload_path(csvFile)
    try:
        await save_upload_file(csvFile, file_path)
        logger.info(f"Importing products from {csvFile.filename} (saved as {file_path})")
        return await CSVHandler(db).import_file(file_path)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    finally:
        remove_upload(file_path)


@router.get("")
async def list_products(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    category: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    products = await ProductService(db).list_products(
        category=category, sort=sort, order=order, page=page, limit=limit
    )
    return {"products": products, "count": len(products)}


@router.get("/{product_id}/history")
async def product_history(product_id: int, db: AsyncSession = Depends(get_db)):
    try:
        product, entries = await InventoryHistoryService(db).get_history(product_id)
    except ProductNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    history = [InventoryHistoryRead.model_validate(entry) for entry in entries]
    return {
        "product": ProductSummary.model_validate(product),
        "history": history,
        "count": len(history),
    }


@router.get("/{product_id}")
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    try:
        product = await ProductService(db).get_product(product_id)
    except ProductNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return {"product": product}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(product_data: ProductCreate, db: AsyncSession = Depends(get_db)):
    try:
        product = await ProductService(db).create_product(product_data)
    except InvalidArgumentError as e:
        raise _invalid(e)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatabaseError as e:
        logger.error(f"Error creating product: {str(e)}")
        raise _server_error(e)
    return {"message": "Product created successfully", "product": product}


@router.put("/{product_id}")
async def update_product(product_id: int, product_data: ProductUpdate, db: AsyncSession = Depends(get_db)):
    try:
        product = await ProductService(db).update_product(product_id, product_data)
    except InvalidArgumentError as e:
        raise _invalid(e)
    except ProductNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatabaseError as e:
        logger.error(f"Error updating product {product_id}: {str(e)}")
        raise _server_error(e)
    return {"message": "Product updated successfully", "product": product}


@router.delete("/{product_id}")
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    try:
        product = await ProductService(db).delete_product(product_id)
    except ProductNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    except DatabaseError as e:
        logger.error(f"Error deleting product {product_id}: {str(e)}")
        raise _server_error(e)
    return {"message": "Product deleted successfully", "deletedProduct": product}
