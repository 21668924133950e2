"""FastAPI application exposing the storefront and admin endpoints."""
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import httpx
from fastapi import APIRouter, Cookie, Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field, field_validator

from .ajax import AjaxPageableResponse, AjaxResponse
from .captcha import CaptchaVerifier
from .catalog import CatalogFacade, CategoryNode, ProductImageView, VariantImageView, localized
from .config import Settings, load_settings
from .content import ContentFacade, ContentFileView, ContentView
from .criteria import (
    Criteria,
    MerchantStoreCriteria,
    ProductCriteria,
    apply_paging,
    build_criteria,
)
from .customers import (
    ContactMessage,
    CustomerFacade,
    CustomerRegistration,
    PasswordChange,
    PasswordReset,
)
from .database import Database
from .emails import EmailSender, EmailTemplates, LoggingEmailSender
from .errors import IntegrationError, NotFoundError, ServiceError
from .filemanager import ContentError, FileContentType, StaticContentFileManager
from .languages import resolve_language, store_locale
from .models import (
    Category,
    Customer,
    Language,
    MerchantStore,
    OrderProductDownload,
    Product,
    ProductAvailability,
    ProductType,
    ShippingOrigin,
)
from .paths import LARGE_IMAGE, SMALL_IMAGE
from .search import SearchFacade
from .security import AdminTokenAuth
from .sessions import CUSTOMER_ATTRIBUTE, LANGUAGE_ATTRIBUTE, STORE_ATTRIBUTE, SessionManager
from .tokens import TokenizeTool

logger = logging.getLogger("salesmanager.api")

API_PREFIX = "/api/v1"
SESSION_COOKIE = "salesmanager_session"

STORE_CRITERIA_PARAMS = {
    "code": "code",
    "name": "name",
    "retailers": "retailers",
    "stores": "stores",
    "order": "criteria_order_by",
    "order_by": "criteria_order_by_field",
}

PRODUCT_CRITERIA_PARAMS = {
    "category": "category_id",
    "name": "product_name",
    "sku": "sku",
    "available": "available",
    "order": "criteria_order_by",
    "order_by": "criteria_order_by_field",
}


# ----------------------------------------------------------------------
# Request models
# ----------------------------------------------------------------------
class PersistableStore(BaseModel):
    code: str = Field(..., min_length=1, max_length=100, pattern=r"^[A-Za-z0-9_-]+$")
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    country: str = Field(..., min_length=2, max_length=2)
    currency: str = Field(..., min_length=3, max_length=3)
    default_language: str = Field(..., min_length=2, max_length=8)
    languages: List[str] = Field(default_factory=list)
    domain: Optional[str] = Field(default=None, max_length=255)
    retailer: bool = False
    parent_code: Optional[str] = None


class PersistableCategory(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)
    names: Dict[str, str] = Field(..., min_length=1)
    descriptions: Dict[str, str] = Field(default_factory=dict)
    seo_urls: Dict[str, str] = Field(default_factory=dict)
    parent_id: Optional[int] = None
    sort_order: int = 0
    visible: bool = True


class PersistableProductType(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    allow_add_to_cart: bool = True


class PersistableProduct(BaseModel):
    sku: str = Field(..., min_length=1, max_length=100)
    names: Dict[str, str] = Field(..., min_length=1)
    descriptions: Dict[str, str] = Field(default_factory=dict)
    price_cents: int = Field(default=0, ge=0)
    category_id: Optional[int] = None
    type_code: Optional[str] = None
    available: bool = True
    quantity: Optional[int] = Field(default=None, ge=0)

    @field_validator("sku")
    @classmethod
    def _normalize_sku(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped or "/" in stripped or stripped in {".", ".."}:
            raise ValueError("sku must be a single path-safe token")
        return stripped


class PersistableAvailability(BaseModel):
    quantity: int = Field(..., ge=0)
    region: str = Field(default="*", min_length=1, max_length=10)
    free_shipping: bool = False


class PersistableVariant(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)
    sku: Optional[str] = Field(default=None, max_length=100)


class ContentText(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    title: Optional[str] = None
    body: Optional[str] = None
    seo_url: Optional[str] = None


class PersistableContent(BaseModel):
    content_type: str = Field(..., min_length=1)
    descriptions: Dict[str, ContentText] = Field(..., min_length=1)
    position: Optional[str] = None
    visible: bool = True
    sort_order: int = 0


class PersistableShippingOrigin(BaseModel):
    active: bool = True
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    postal_code: Optional[str] = Field(default=None, max_length=20)
    state: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, min_length=2, max_length=2)


class PersistableOrderDownload(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    max_days: int = Field(default=0, ge=0)
    max_downloads: int = Field(default=0, ge=0)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class PasswordResetRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)


# ----------------------------------------------------------------------
# Response models
# ----------------------------------------------------------------------
class ReadableStore(BaseModel):
    id: int
    code: str
    name: str
    email: str
    country: str
    currency: str
    default_language: str
    languages: List[str]
    locale: str
    domain: Optional[str]
    retailer: bool
    created_at: datetime


class StoreListResponse(BaseModel):
    total: int
    items: List[ReadableStore]


class ReadableCategory(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    seo_url: Optional[str] = None
    parent_id: Optional[int]
    depth: int
    lineage: str
    sort_order: int
    visible: bool
    children: List["ReadableCategory"] = Field(default_factory=list)


class ReadableProductType(BaseModel):
    id: int
    code: str
    name: str
    allow_add_to_cart: bool


class ReadableProduct(BaseModel):
    id: int
    sku: str
    name: Optional[str]
    description: Optional[str]
    price_cents: int
    available: bool
    category_id: Optional[int]
    type_id: Optional[int]
    created_at: datetime


class ProductListResponse(BaseModel):
    total: int
    items: List[ReadableProduct]


class ReadableImage(BaseModel):
    id: int
    image_name: str
    default_image: bool
    sort_order: int
    alt_tag: Optional[str] = None
    small_url: str
    large_url: str


class ReadableVariantImage(BaseModel):
    id: int
    variant_id: int
    variant_code: str
    image_name: str
    url: str


class ReadableAvailability(BaseModel):
    region: str
    quantity: int
    free_shipping: bool


class SearchHitResponse(BaseModel):
    score: int
    product: ReadableProduct


class SearchResponse(BaseModel):
    total: int
    items: List[SearchHitResponse]


class ReadableContent(BaseModel):
    code: str
    content_type: str
    language: str
    name: str
    title: Optional[str]
    body: Optional[str]
    seo_url: Optional[str]
    position: Optional[str]


class ReadableCustomer(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    gender: Optional[str]
    language: str
    created_at: datetime


class ReadableShippingOrigin(BaseModel):
    active: bool
    address: Optional[str]
    city: Optional[str]
    postal_code: Optional[str]
    state: Optional[str]
    country: Optional[str]


class ReadableOrderDownload(BaseModel):
    id: int
    order_id: int
    file_name: str
    max_days: int
    max_downloads: int
    download_count: int
    created_at: datetime


class RegistrationConfigResponse(BaseModel):
    captcha_enabled: bool
    captcha_site_key: Optional[str]


ReadableCategory.model_rebuild()


# ----------------------------------------------------------------------
# Converters
# ----------------------------------------------------------------------
def store_to_response(store: MerchantStore) -> ReadableStore:
    return ReadableStore(
        id=store.id,
        code=store.code,
        name=store.name,
        email=store.email,
        country=store.country,
        currency=store.currency,
        default_language=store.default_language.code,
        languages=[language.code for language in store.languages],
        locale=store_locale(store),
        domain=store.domain,
        retailer=store.retailer,
        created_at=store.created_at,
    )


def category_to_response(category: Category, store: MerchantStore, language: Language) -> ReadableCategory:
    fallback = store.default_language
    return ReadableCategory(
        id=category.id,
        code=category.code,
        name=localized(category.names, language, fallback) or category.code,
        description=localized(category.descriptions, language, fallback),
        seo_url=localized(category.seo_urls, language, fallback),
        parent_id=category.parent_id,
        depth=category.depth,
        lineage=category.lineage,
        sort_order=category.sort_order,
        visible=category.visible,
    )


def node_to_response(node: CategoryNode, store: MerchantStore, language: Language) -> ReadableCategory:
    response = category_to_response(node.category, store, language)
    response.children = [node_to_response(child, store, language) for child in node.children]
    return response


def product_to_response(product: Product, store: MerchantStore, language: Language) -> ReadableProduct:
    fallback = store.default_language
    return ReadableProduct(
        id=product.id,
        sku=product.sku,
        name=localized(product.names, language, fallback),
        description=localized(product.descriptions, language, fallback),
        price_cents=product.price_cents,
        available=product.available,
        category_id=product.category_id,
        type_id=product.type_id,
        created_at=product.created_at,
    )


def image_to_response(view: ProductImageView, language: Language) -> ReadableImage:
    alt_tag = next(
        (item.alt_tag for item in view.image.descriptions if item.language_code == language.code),
        None,
    )
    return ReadableImage(
        id=view.image.id,
        image_name=view.image.image_name,
        default_image=view.image.default_image,
        sort_order=view.image.sort_order,
        alt_tag=alt_tag,
        small_url=view.small_url,
        large_url=view.large_url,
    )


def variant_image_to_response(view: VariantImageView) -> ReadableVariantImage:
    return ReadableVariantImage(
        id=view.image.id,
        variant_id=view.image.variant_id,
        variant_code=view.image.variant_code,
        image_name=view.image.image_name,
        url=view.url,
    )


def availability_to_response(item: ProductAvailability) -> ReadableAvailability:
    return ReadableAvailability(region=item.region, quantity=item.quantity, free_shipping=item.free_shipping)


def product_type_to_response(item: ProductType) -> ReadableProductType:
    return ReadableProductType(id=item.id, code=item.code, name=item.name, allow_add_to_cart=item.allow_add_to_cart)


def content_to_response(view: ContentView) -> ReadableContent:
    return ReadableContent(
        code=view.code,
        content_type=view.content_type,
        language=view.language,
        name=view.name,
        title=view.title,
        body=view.body,
        seo_url=view.seo_url,
        position=view.position,
    )


def customer_to_response(customer: Customer) -> ReadableCustomer:
    return ReadableCustomer(
        id=customer.id,
        email=customer.email,
        first_name=customer.first_name,
        last_name=customer.last_name,
        gender=customer.gender,
        language=customer.language_code,
        created_at=customer.created_at,
    )


def origin_to_response(origin: ShippingOrigin) -> ReadableShippingOrigin:
    return ReadableShippingOrigin(
        active=origin.active,
        address=origin.address,
        city=origin.city,
        postal_code=origin.postal_code,
        state=origin.state,
        country=origin.country,
    )


def download_to_response(item: OrderProductDownload) -> ReadableOrderDownload:
    return ReadableOrderDownload(
        id=item.id,
        order_id=item.order_id,
        file_name=item.file_name,
        max_days=item.max_days,
        max_downloads=item.max_downloads,
        download_count=item.download_count,
        created_at=item.created_at,
    )


def _file_type(value: str) -> FileContentType:
    try:
        return FileContentType[value.strip().upper()]
    except KeyError as exc:
        raise ServiceError(f"Unknown file type '{value}'") from exc


def _file_entry(view: ContentFileView) -> Dict[str, str]:
    return {"name": view.name, "type": view.file_type.value, "url": view.url}


def _content_failure(exc: ContentError) -> JSONResponse:
    ajax = AjaxResponse(AjaxResponse.FAILURE)
    ajax.set_error(exc)
    return ajax.to_response(status.HTTP_400_BAD_REQUEST)


def _paged(criteria: Criteria, page: Optional[int], count: Optional[int]) -> Criteria:
    if count:
        apply_paging(criteria, page or 0, count)
    return criteria


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _download_expired(download: OrderProductDownload) -> bool:
    if download.max_downloads and download.download_count >= download.max_downloads:
        return True
    if download.max_days:
        return datetime.now(timezone.utc) > download.created_at + timedelta(days=download.max_days)
    return False


def create_app(
    *,
    settings: Settings | None = None,
    database: Database | None = None,
    file_manager: StaticContentFileManager | None = None,
    email_sender: EmailSender | None = None,
    captcha_client: httpx.Client | None = None,
    initialize_database: bool = True,
) -> FastAPI:
    """Build the storefront application from settings and optional overrides."""

    settings = settings or load_settings()
    database = database or Database(settings.database_path)
    if initialize_database:
        database.initialize()
    file_manager = file_manager or StaticContentFileManager.local(settings.content_root)

    captcha: CaptchaVerifier | None = None
    if settings.captcha.enabled:
        captcha = CaptchaVerifier.from_settings(settings.captcha, client=captcha_client)

    if not settings.secret_key:
        logger.warning("No secret key configured; password reset links will not survive a restart")
    tokenizer = TokenizeTool(settings.secret_key or secrets.token_urlsafe(32))

    catalog = CatalogFacade(
        database,
        file_manager,
        small_image_size=settings.small_image_size,
        large_image_size=settings.large_image_size,
        public_base_url=settings.public_base_url,
    )
    content = ContentFacade(database, file_manager, public_base_url=settings.public_base_url)
    search = SearchFacade(database)
    customers = CustomerFacade(
        database,
        tokenizer=tokenizer,
        templates=EmailTemplates(),
        sender=email_sender or LoggingEmailSender(),
        captcha=captcha,
        public_base_url=settings.public_base_url,
        reset_token_ttl=timedelta(hours=settings.reset_token_ttl_hours),
    )
    sessions = SessionManager(ttl=timedelta(hours=settings.session_ttl_hours))
    secure_cookies = settings.public_base_url.startswith("https://")
    if not secure_cookies:
        logger.warning("Session cookies are not marked as secure; serve the storefront over HTTPS in production")

    auth = AdminTokenAuth(settings.admin_tokens)
    if not auth.enabled:
        logger.warning("No admin API tokens configured; private endpoints are disabled")

    app = FastAPI(
        title="SalesManager Storefront",
        description="Multi-store catalog, content, and customer API",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.database = database
    app.state.catalog = catalog
    app.state.content = content
    app.state.search = search
    app.state.customers = customers
    app.state.sessions = sessions

    @app.exception_handler(NotFoundError)
    async def _handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(ServiceError)
    async def _handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(IntegrationError)
    async def _handle_integration_error(request: Request, exc: IntegrationError) -> JSONResponse:
        logger.error("Upstream integration failed on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})

    def get_store(store: str) -> MerchantStore:
        return catalog.get_store(store)

    def get_language(merchant: MerchantStore = Depends(get_store), lang: Optional[str] = None) -> Language:
        return resolve_language(merchant, lang)

    def current_customer(
        merchant: MerchantStore = Depends(get_store),
        session_token: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE),
    ) -> Customer:
        if not session_token or not sessions.resolve(session_token):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
        if sessions.get_attribute(session_token, STORE_ATTRIBUTE) != merchant.code:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in to this store")
        customer_id = sessions.get_attribute(session_token, CUSTOMER_ATTRIBUTE)
        customer = customers.get_customer(merchant, int(customer_id)) if customer_id is not None else None
        if customer is None:
            sessions.destroy(session_token)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
        return customer

    public = APIRouter(prefix=API_PREFIX)
    private = APIRouter(prefix=f"{API_PREFIX}/private", dependencies=[Depends(auth)])

    # ------------------------------------------------------------------
    # Public storefront
    # ------------------------------------------------------------------
    @public.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @public.get("/stores/{store}", response_model=ReadableStore)
    async def read_store(merchant: MerchantStore = Depends(get_store)) -> ReadableStore:
        return store_to_response(merchant)

    @public.get("/stores/{store}/categories", response_model=List[ReadableCategory])
    async def read_category_tree(
        merchant: MerchantStore = Depends(get_store),
        language: Language = Depends(get_language),
    ) -> List[ReadableCategory]:
        return [node_to_response(node, merchant, language) for node in catalog.category_tree(merchant, language)]

    @public.get("/stores/{store}/categories/{category_id}/children", response_model=List[ReadableCategory])
    async def read_child_categories(
        category_id: int,
        merchant: MerchantStore = Depends(get_store),
        language: Language = Depends(get_language),
    ) -> List[ReadableCategory]:
        return [
            category_to_response(category, merchant, language)
            for category in catalog.child_categories(merchant, category_id)
        ]

    @public.get("/stores/{store}/products", response_model=ProductListResponse)
    async def list_products(
        request: Request,
        page: Optional[int] = Query(default=None, ge=0),
        count: Optional[int] = Query(default=None, ge=0, le=500),
        merchant: MerchantStore = Depends(get_store),
        language: Language = Depends(get_language),
    ) -> ProductListResponse:
        criteria = build_criteria(PRODUCT_CRITERIA_PARAMS, request.query_params, ProductCriteria())
        criteria.language = language.code
        products, total = catalog.list_products(merchant, _paged(criteria, page, count))
        return ProductListResponse(
            total=total,
            items=[product_to_response(product, merchant, language) for product in products],
        )

    @public.get("/stores/{store}/products/{product_id}", response_model=ReadableProduct)
    async def read_product(
        product_id: int,
        merchant: MerchantStore = Depends(get_store),
        language: Language = Depends(get_language),
    ) -> ReadableProduct:
        return product_to_response(catalog.get_product(merchant, product_id), merchant, language)

    @public.get("/stores/{store}/products/{product_id}/images", response_model=List[ReadableImage])
    async def read_product_images(
        product_id: int,
        merchant: MerchantStore = Depends(get_store),
        language: Language = Depends(get_language),
    ) -> List[ReadableImage]:
        return [image_to_response(view, language) for view in catalog.product_images(merchant, product_id)]

    @public.get("/stores/{store}/products/{product_id}/variant-images", response_model=List[ReadableVariantImage])
    async def read_variant_images(
        product_id: int,
        merchant: MerchantStore = Depends(get_store),
    ) -> List[ReadableVariantImage]:
        return [variant_image_to_response(view) for view in catalog.variant_images(merchant, product_id)]

    @public.get("/stores/{store}/products/{product_id}/availability", response_model=List[ReadableAvailability])
    async def read_availability(
        product_id: int,
        merchant: MerchantStore = Depends(get_store),
    ) -> List[ReadableAvailability]:
        return [availability_to_response(item) for item in catalog.availability(merchant, product_id)]

    @public.get("/stores/{store}/product-types", response_model=List[ReadableProductType])
    async def read_product_types(merchant: MerchantStore = Depends(get_store)) -> List[ReadableProductType]:
        return [product_type_to_response(item) for item in catalog.product_types(merchant)]

    @public.get("/stores/{store}/search", response_model=SearchResponse)
    async def search_products(
        q: str = Query(..., min_length=1, max_length=200),
        page: Optional[int] = Query(default=None, ge=0),
        count: Optional[int] = Query(default=None, ge=0, le=500),
        merchant: MerchantStore = Depends(get_store),
        language: Language = Depends(get_language),
    ) -> SearchResponse:
        result = search.search(merchant, language, q, _paged(Criteria(search=q), page, count))
        return SearchResponse(
            total=result.total,
            items=[
                SearchHitResponse(score=hit.score, product=product_to_response(hit.product, merchant, language))
                for hit in result.hits
            ],
        )

    @public.get("/stores/{store}/search/autocomplete", response_model=List[str])
    async def autocomplete(
        q: str = Query(..., min_length=1, max_length=100),
        limit: int = Query(default=10, ge=1, le=50),
        merchant: MerchantStore = Depends(get_store),
        language: Language = Depends(get_language),
    ) -> List[str]:
        return search.autocomplete(merchant, language, q, limit)

    @public.get("/stores/{store}/content/pages", response_model=List[ReadableContent])
    async def list_pages(
        merchant: MerchantStore = Depends(get_store),
        language: Language = Depends(get_language),
    ) -> List[ReadableContent]:
        return [content_to_response(view) for view in content.pages(merchant, language)]

    @public.get("/stores/{store}/content/pages/{code}", response_model=ReadableContent)
    async def read_page(
        code: str,
        merchant: MerchantStore = Depends(get_store),
        language: Language = Depends(get_language),
    ) -> ReadableContent:
        return content_to_response(content.get_content(merchant, code, language, content_type="PAGE"))

    @public.get("/stores/{store}/content/boxes", response_model=List[ReadableContent])
    async def list_boxes(
        position: Optional[str] = None,
        merchant: MerchantStore = Depends(get_store),
        language: Language = Depends(get_language),
    ) -> List[ReadableContent]:
        return [content_to_response(view) for view in content.boxes(merchant, language, position=position)]

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------
    @public.get("/stores/{store}/customers/registration", response_model=RegistrationConfigResponse)
    async def registration_config(merchant: MerchantStore = Depends(get_store)) -> RegistrationConfigResponse:
        return RegistrationConfigResponse(
            captcha_enabled=customers.captcha_enabled,
            captcha_site_key=settings.captcha.site_key if customers.captcha_enabled else None,
        )

    @public.post(
        "/stores/{store}/customers/register",
        response_model=ReadableCustomer,
        status_code=status.HTTP_201_CREATED,
    )
    async def register_customer(
        payload: CustomerRegistration,
        request: Request,
        merchant: MerchantStore = Depends(get_store),
    ) -> ReadableCustomer:
        customer = customers.register(merchant, payload, remote_ip=_client_ip(request))
        return customer_to_response(customer)

    @public.post("/stores/{store}/customers/login", response_model=ReadableCustomer)
    async def login_customer(
        payload: LoginRequest,
        response: Response,
        merchant: MerchantStore = Depends(get_store),
    ) -> ReadableCustomer:
        customer = customers.authenticate(merchant, payload.email, payload.password)
        if customer is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
        token = sessions.create(
            **{
                CUSTOMER_ATTRIBUTE: customer.id,
                STORE_ATTRIBUTE: merchant.code,
                LANGUAGE_ATTRIBUTE: customer.language_code,
            }
        )
        response.set_cookie(
            SESSION_COOKIE,
            token,
            max_age=sessions.cookie_max_age,
            httponly=True,
            secure=secure_cookies,
            samesite="lax",
        )
        return customer_to_response(customer)

    @public.get("/stores/{store}/customers/me", response_model=ReadableCustomer)
    async def read_current_customer(customer: Customer = Depends(current_customer)) -> ReadableCustomer:
        return customer_to_response(customer)

    @public.post("/stores/{store}/customers/logout", status_code=status.HTTP_204_NO_CONTENT)
    async def logout_customer(
        merchant: MerchantStore = Depends(get_store),
        session_token: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE),
    ) -> Response:
        if session_token:
            sessions.destroy(session_token)
        response = Response(status_code=status.HTTP_204_NO_CONTENT)
        response.delete_cookie(SESSION_COOKIE)
        return response

    @public.post("/stores/{store}/customers/password", status_code=status.HTTP_204_NO_CONTENT)
    async def change_password(
        payload: PasswordChange,
        merchant: MerchantStore = Depends(get_store),
        customer: Customer = Depends(current_customer),
    ) -> Response:
        customers.change_password(merchant, customer, payload)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @public.post("/stores/{store}/customers/password-reset/request", status_code=status.HTTP_202_ACCEPTED)
    async def request_password_reset(
        payload: PasswordResetRequest,
        merchant: MerchantStore = Depends(get_store),
    ) -> Dict[str, str]:
        customers.request_password_reset(merchant, payload.email)
        return {"status": "accepted"}

    @public.post("/stores/{store}/customers/password-reset", status_code=status.HTTP_204_NO_CONTENT)
    async def reset_password(
        payload: PasswordReset,
        merchant: MerchantStore = Depends(get_store),
    ) -> Response:
        customers.reset_password(merchant, payload)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @public.post("/stores/{store}/contact", status_code=status.HTTP_202_ACCEPTED)
    async def contact_store(
        payload: ContactMessage,
        request: Request,
        merchant: MerchantStore = Depends(get_store),
    ) -> Dict[str, str]:
        customers.contact_store(merchant, payload, remote_ip=_client_ip(request))
        return {"status": "accepted"}

    # ------------------------------------------------------------------
    # Admin: stores and catalog
    # ------------------------------------------------------------------
    @private.get("/stores", response_model=StoreListResponse)
    async def list_stores(
        request: Request,
        page: Optional[int] = Query(default=None, ge=0),
        count: Optional[int] = Query(default=None, ge=0, le=500),
    ) -> StoreListResponse:
        criteria = build_criteria(STORE_CRITERIA_PARAMS, request.query_params, MerchantStoreCriteria())
        stores, total = database.list_stores(_paged(criteria, page, count))
        return StoreListResponse(total=total, items=[store_to_response(item) for item in stores])

    @private.post("/stores", response_model=ReadableStore, status_code=status.HTTP_201_CREATED)
    async def create_store(payload: PersistableStore) -> ReadableStore:
        try:
            merchant = database.create_store(
                payload.code,
                name=payload.name,
                email=payload.email,
                country=payload.country,
                currency=payload.currency,
                default_language=payload.default_language,
                languages=payload.languages,
                domain=payload.domain,
                retailer=payload.retailer,
                parent_code=payload.parent_code,
            )
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc
        logger.info("Created store %s", merchant.code)
        return store_to_response(merchant)

    @private.post(
        "/stores/{store}/categories",
        response_model=ReadableCategory,
        status_code=status.HTTP_201_CREATED,
    )
    async def create_category(
        payload: PersistableCategory,
        merchant: MerchantStore = Depends(get_store),
    ) -> ReadableCategory:
        category = catalog.create_category(
            merchant,
            code=payload.code,
            names=payload.names,
            parent_id=payload.parent_id,
            descriptions=payload.descriptions,
            seo_urls=payload.seo_urls,
            sort_order=payload.sort_order,
            visible=payload.visible,
        )
        return category_to_response(category, merchant, merchant.default_language)

    @private.post(
        "/stores/{store}/product-types",
        response_model=ReadableProductType,
        status_code=status.HTTP_201_CREATED,
    )
    async def create_product_type(
        payload: PersistableProductType,
        merchant: MerchantStore = Depends(get_store),
    ) -> ReadableProductType:
        product_type = catalog.create_product_type(
            merchant, code=payload.code, name=payload.name, allow_add_to_cart=payload.allow_add_to_cart
        )
        return product_type_to_response(product_type)

    @private.post(
        "/stores/{store}/products",
        response_model=ReadableProduct,
        status_code=status.HTTP_201_CREATED,
    )
    async def create_product(
        payload: PersistableProduct,
        merchant: MerchantStore = Depends(get_store),
    ) -> ReadableProduct:
        product = catalog.create_product(
            merchant,
            sku=payload.sku,
            names=payload.names,
            descriptions=payload.descriptions,
            price_cents=payload.price_cents,
            category_id=payload.category_id,
            type_code=payload.type_code,
            available=payload.available,
        )
        if payload.quantity is not None:
            catalog.update_availability(merchant, product.id, quantity=payload.quantity)
        search.index_product(merchant, product)
        return product_to_response(product, merchant, merchant.default_language)

    @private.put(
        "/stores/{store}/products/{product_id}/availability",
        response_model=ReadableAvailability,
    )
    async def update_availability(
        product_id: int,
        payload: PersistableAvailability,
        merchant: MerchantStore = Depends(get_store),
    ) -> ReadableAvailability:
        availability = catalog.update_availability(
            merchant,
            product_id,
            quantity=payload.quantity,
            region=payload.region,
            free_shipping=payload.free_shipping,
        )
        return availability_to_response(availability)

    @private.post(
        "/stores/{store}/products/{product_id}/images",
        response_model=ReadableImage,
        status_code=status.HTTP_201_CREATED,
    )
    async def upload_product_image(
        product_id: int,
        request: Request,
        filename: str = Query(..., min_length=1, max_length=255),
        default: bool = False,
        alt: Optional[str] = Query(default=None, max_length=255),
        merchant: MerchantStore = Depends(get_store),
        language: Language = Depends(get_language),
    ) -> ReadableImage:
        data = await request.body()
        descriptions = {language.code: (filename, alt)} if alt else None
        view = await catalog.upload_product_image(
            merchant,
            product_id,
            file_name=filename,
            data=data,
            descriptions=descriptions,
            default_image=default,
        )
        return image_to_response(view, language)

    @private.post("/stores/{store}/products/{product_id}/variants", status_code=status.HTTP_201_CREATED)
    async def create_variant(
        product_id: int,
        payload: PersistableVariant,
        merchant: MerchantStore = Depends(get_store),
    ) -> Dict[str, int]:
        variant_id = catalog.create_variant(merchant, product_id, code=payload.code, sku=payload.sku)
        return {"id": variant_id}

    @private.post(
        "/stores/{store}/products/{product_id}/variants/{variant_id}/images",
        response_model=ReadableVariantImage,
        status_code=status.HTTP_201_CREATED,
    )
    async def upload_variant_image(
        product_id: int,
        variant_id: int,
        request: Request,
        filename: str = Query(..., min_length=1, max_length=255),
        merchant: MerchantStore = Depends(get_store),
    ) -> ReadableVariantImage:
        view = await catalog.upload_variant_image(
            merchant, product_id, variant_id, file_name=filename, data=await request.body()
        )
        return variant_image_to_response(view)

    @private.post("/stores/{store}/search/reindex")
    async def reindex_store(merchant: MerchantStore = Depends(get_store)) -> Dict[str, int]:
        return {"indexed": search.reindex_store(merchant)}

    # ------------------------------------------------------------------
    # Admin: content
    # ------------------------------------------------------------------
    @private.put("/stores/{store}/content/{code}", response_model=ReadableContent)
    async def save_content(
        code: str,
        payload: PersistableContent,
        merchant: MerchantStore = Depends(get_store),
    ) -> ReadableContent:
        entity = content.save_content(
            merchant,
            code=code,
            content_type=payload.content_type,
            texts={language: text.model_dump() for language, text in payload.descriptions.items()},
            position=payload.position,
            visible=payload.visible,
            sort_order=payload.sort_order,
        )
        return content_to_response(content.view(merchant, entity, merchant.default_language))

    @private.delete("/stores/{store}/content/{code}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_content(code: str, merchant: MerchantStore = Depends(get_store)) -> Response:
        content.delete_content(merchant, code)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @private.get("/stores/{store}/files")
    async def list_files(
        file_type: str = Query(default="STATIC_FILE", alias="type"),
        path: Optional[str] = None,
        merchant: MerchantStore = Depends(get_store),
    ) -> JSONResponse:
        try:
            files = content.list_files(merchant, _file_type(file_type), path=path)
        except ContentError as exc:
            return _content_failure(exc)
        ajax = AjaxPageableResponse(AjaxResponse.SUCCESS)
        for view in files:
            ajax.add_entry(_file_entry(view))
        ajax.total_row = len(files)
        ajax.end_row = len(files)
        return ajax.to_response()

    @private.post("/stores/{store}/files", status_code=status.HTTP_201_CREATED)
    async def upload_file(
        request: Request,
        filename: str = Query(..., min_length=1, max_length=255),
        file_type: str = Query(default="STATIC_FILE", alias="type"),
        path: Optional[str] = None,
        merchant: MerchantStore = Depends(get_store),
    ) -> JSONResponse:
        try:
            view = content.upload_file(
                merchant,
                file_name=filename,
                data=await request.body(),
                file_type=_file_type(file_type),
                mime_type=request.headers.get("content-type"),
                path=path,
            )
        except ContentError as exc:
            return _content_failure(exc)
        ajax = AjaxResponse(AjaxResponse.SUCCESS)
        ajax.add_entry(_file_entry(view))
        return ajax.to_response(status.HTTP_201_CREATED)

    @private.delete("/stores/{store}/files/{file_name}")
    async def remove_file(
        file_name: str,
        file_type: str = Query(default="STATIC_FILE", alias="type"),
        path: Optional[str] = None,
        merchant: MerchantStore = Depends(get_store),
    ) -> JSONResponse:
        try:
            content.remove_file(merchant, _file_type(file_type), file_name, path=path)
        except ContentError as exc:
            return _content_failure(exc)
        return AjaxResponse(AjaxResponse.OPERATION_COMPLETED).to_response()

    @private.get("/stores/{store}/folders")
    async def list_folders(path: Optional[str] = None, merchant: MerchantStore = Depends(get_store)) -> JSONResponse:
        try:
            folders = content.list_folders(merchant, path=path)
        except ContentError as exc:
            return _content_failure(exc)
        ajax = AjaxResponse(AjaxResponse.SUCCESS)
        for folder in folders:
            ajax.add_entry({"name": folder})
        return ajax.to_response()

    @private.post("/stores/{store}/folders/{folder_name}", status_code=status.HTTP_201_CREATED)
    async def add_folder(
        folder_name: str,
        path: Optional[str] = None,
        merchant: MerchantStore = Depends(get_store),
    ) -> JSONResponse:
        try:
            content.add_folder(merchant, folder_name, path=path)
        except ContentError as exc:
            return _content_failure(exc)
        return AjaxResponse(AjaxResponse.OPERATION_COMPLETED).to_response(status.HTTP_201_CREATED)

    @private.delete("/stores/{store}/folders/{folder_name}")
    async def remove_folder(
        folder_name: str,
        path: Optional[str] = None,
        merchant: MerchantStore = Depends(get_store),
    ) -> JSONResponse:
        try:
            content.remove_folder(merchant, folder_name, path=path)
        except ContentError as exc:
            return _content_failure(exc)
        return AjaxResponse(AjaxResponse.OPERATION_COMPLETED).to_response()

    # ------------------------------------------------------------------
    # Admin: shipping and orders
    # ------------------------------------------------------------------
    @private.get("/stores/{store}/shipping/origin", response_model=ReadableShippingOrigin)
    async def read_shipping_origin(merchant: MerchantStore = Depends(get_store)) -> ReadableShippingOrigin:
        origin = database.get_shipping_origin(merchant.id)
        if origin is None:
            raise NotFoundError("Shipping origin not configured")
        return origin_to_response(origin)

    @private.put("/stores/{store}/shipping/origin", response_model=ReadableShippingOrigin)
    async def save_shipping_origin(
        payload: PersistableShippingOrigin,
        merchant: MerchantStore = Depends(get_store),
    ) -> ReadableShippingOrigin:
        origin = database.save_shipping_origin(ShippingOrigin(store_id=merchant.id, **payload.model_dump()))
        return origin_to_response(origin)

    @private.post(
        "/stores/{store}/orders/{order_id}/downloads",
        response_model=ReadableOrderDownload,
        status_code=status.HTTP_201_CREATED,
    )
    async def create_order_download(
        order_id: int,
        payload: PersistableOrderDownload,
        merchant: MerchantStore = Depends(get_store),
    ) -> ReadableOrderDownload:
        download = database.create_order_download(
            merchant.id,
            order_id,
            file_name=payload.file_name,
            max_days=payload.max_days,
            max_downloads=payload.max_downloads,
        )
        return download_to_response(download)

    @private.get("/stores/{store}/orders/{order_id}/downloads", response_model=List[ReadableOrderDownload])
    async def list_order_downloads(
        order_id: int,
        merchant: MerchantStore = Depends(get_store),
    ) -> List[ReadableOrderDownload]:
        return [download_to_response(item) for item in database.list_order_downloads(merchant.id, order_id)]

    @private.get("/stores/{store}/orders/{order_id}/downloads/{download_id}/file")
    async def fetch_order_download(
        order_id: int,
        download_id: int,
        merchant: MerchantStore = Depends(get_store),
    ) -> Response:
        download = database.get_order_download(merchant.id, download_id)
        if download is None or download.order_id != order_id:
            raise NotFoundError("Download not found")
        if _download_expired(download):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Download is no longer available")
        file = content.get_file(merchant.code, FileContentType.PRODUCT_DIGITAL, download.file_name)
        database.increment_download_count(download.id)
        return Response(
            content=file.data,
            media_type=file.mime_type,
            headers={"Content-Disposition": f'attachment; filename="{file.file_name}"'},
        )

    app.include_router(public)
    app.include_router(private)

    # ------------------------------------------------------------------
    # Static content
    # ------------------------------------------------------------------
    @app.get("/static/files/{store}/{file_type}/{file_path:path}")
    async def serve_static_file(store: str, file_type: str, file_path: str) -> Response:
        content_type = _file_type(file_type)
        # Digital goods are only served through order downloads.
        if content_type is FileContentType.PRODUCT_DIGITAL:
            raise NotFoundError("File not found")
        folder, _, file_name = file_path.rpartition("/")
        file = content.get_file(store, content_type, file_name, path=folder or None)
        return Response(content=file.data, media_type=file.mime_type)

    @app.get("/static/products/{store}/{sku}/{size}/{file_name}")
    async def serve_product_image(store: str, sku: str, size: str, file_name: str) -> Response:
        if size.upper() not in {SMALL_IMAGE, LARGE_IMAGE}:
            raise NotFoundError("Unknown image size")
        file = catalog.product_image_file(store, sku, file_name, size)
        if file is None:
            raise NotFoundError("Image not found")
        return Response(content=file.data, media_type=file.mime_type)

    return app


__all__ = ["API_PREFIX", "SESSION_COOKIE", "create_app"]
