from fastapi import APIRouter, Depends
from typing import List
from minio.error import MinioException
from urllib3.exceptions import HTTPError as Urllib3HTTPError
from storefront.api.deps import get_catalog_cache, get_image_storage, get_products, require_admin
from storefront.core.config import settings
from storefront.core.errors import NotFound
from storefront.core.logging import get_logger
from storefront.schemas import MessageRead, ProductCreate, ProductRead, RecommendedProduct
from storefront.services.catalog import CatalogCache
from storefront.services.storage import ImageStorage
from storefront.store.products import ProductRepository

router = APIRouter()  # main.py mounts at /api/products
logger = get_logger(__name__)

@router.get('/', response_model=List[ProductRead], dependencies=[Depends(require_admin)])
def get_all_products(products: ProductRepository = Depends(get_products)):
    return products.find_all()

@router.get('/featured', response_model=List[ProductRead])
def get_featured_products(catalog: CatalogCache = Depends(get_catalog_cache)):
    return catalog.get_featured()

@router.get('/recommendations', response_model=List[RecommendedProduct])
def get_recommended_products(products: ProductRepository = Depends(get_products)):
    return products.sample_random(settings.RECOMMENDED_SAMPLE_SIZE)

@router.get('/category/{category}', response_model=List[ProductRead])
def get_products_by_category(category: str, products: ProductRepository = Depends(get_products)):
    return products.find_all(category=category)

@router.post('/', response_model=ProductRead, status_code=201, dependencies=[Depends(require_admin)])
def create_product(payload: ProductCreate, products: ProductRepository = Depends(get_products), images: ImageStorage = Depends(get_image_storage)):
    fields = payload.model_dump(exclude={'image'})
    fields['image'] = images.upload_data_url(payload.image) if payload.image else ''
    obj = products.create(fields)
    logger.info('product_created', product_id=obj.id, category=obj.category)
    return obj

@router.delete('/{product_id}', response_model=MessageRead, dependencies=[Depends(require_admin)])
def delete_product(product_id: int, products: ProductRepository = Depends(get_products), catalog: CatalogCache = Depends(get_catalog_cache), images: ImageStorage = Depends(get_image_storage)):
    obj = products.find_by_id(product_id)
    if not obj: raise NotFound('Product not found')
    was_featured, image = obj.is_featured, obj.image
    if image:
        try:
            images.remove_by_url(image)
        except (MinioException, Urllib3HTTPError) as exc:
            logger.warning('product_image_delete_failed', product_id=product_id, error=str(exc))
    products.delete_by_id(product_id)
    if was_featured: catalog.invalidate()
    return {'message': 'Product deleted successfully'}

@router.patch('/{product_id}', response_model=ProductRead, dependencies=[Depends(require_admin)])
def toggle_featured_product(product_id: int, products: ProductRepository = Depends(get_products), catalog: CatalogCache = Depends(get_catalog_cache)):
    obj = products.find_by_id(product_id)
    if not obj: raise NotFound('Product not found')
    obj.is_featured = not obj.is_featured
    obj = products.save(obj)
    # after the commit, so the refreshed entry can't be a pre-write snapshot
    catalog.invalidate()
    return obj
