"""Main entry point for the WhatsApp site order assistant API."""
import logging
from typing import List
from xml.sax.saxutils import escape
from fastapi import FastAPI, Form, HTTPException
from fastapi.responses import Response

from config import PORT, LOG_LEVEL, LOG_FORMAT
from logger import setup_logging
from models.api import (
    HealthResponse,
    ManualOrderRequest,
    OrderListResponse,
    OrderModel,
    SiteListResponse,
)
from models.order import Material, OrderRecord
from services.session_store import SessionStore
from services.llm_client import LLMClient
from services.conversational_agent import ConversationalAgent
from services.extraction_agent import ExtractionAgent
from services.legacy_responder import LegacyResponder
from services.order_store import OrderStore, OrderStoreError
from services.message_handler import MessageHandler
from services.text_chunker import chunk_text

# Initialize logging
logger = logging.getLogger(__name__)

SERVICE_NAME = "whatsapp-order-assistant"
VERSION = "1.0.0"

NO_MESSAGE_REPLY = "Sorry, I didn't receive a message. Could you try again?"
UNEXPECTED_ERROR_REPLY = "❌ An unexpected error occurred. Please try again."

# Initialize FastAPI app
app = FastAPI(
    title="WhatsApp Order Assistant",
    description="Takes construction-material orders over WhatsApp",
    version=VERSION
)

# Initialize services (will be done on startup)
session_store: SessionStore = None
order_store: OrderStore = None
message_handler: MessageHandler = None


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global session_store, order_store, message_handler

    if LOG_FORMAT == "json":
        setup_logging(LOG_LEVEL)

    logger.info("Initializing order assistant services...")

    try:
        session_store = SessionStore()
        logger.info("Initialized SessionStore")

        llm_client = LLMClient()
        logger.info("Initialized LLMClient")

        order_store = OrderStore()
        await order_store.connect()
        if order_store.available and not await order_store.test_connection():
            logger.warning("Orders table is not reachable; orders may fail to save")
        logger.info("Initialized OrderStore")

        message_handler = MessageHandler(
            session_store=session_store,
            conversational_agent=ConversationalAgent(llm_client),
            extraction_agent=ExtractionAgent(llm_client),
            legacy_responder=LegacyResponder(llm_client),
            order_store=order_store
        )
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


def render_twiml(segments: List[str]) -> str:
    """Render reply segments as a TwiML document, one <Message> per segment."""
    messages = "".join(f"<Message>{escape(segment)}</Message>" for segment in segments)
    return f'<?xml version="1.0" encoding="UTF-8"?><Response>{messages}</Response>'


def twiml_response(segments: List[str], status_code: int = 200) -> Response:
    return Response(content=render_twiml(segments), media_type="text/xml", status_code=status_code)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "WhatsApp Order Assistant API"}


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Detailed health check."""
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        version=VERSION,
        active_sessions=session_store.active_session_count() if session_store else 0
    )


@app.post("/")
@app.post("/whatsapp")
async def whatsapp_webhook(
    From: str = Form(default=""),
    Body: str = Form(default="")
) -> Response:
    """
    Webhook for inbound WhatsApp messages (Twilio form payload).

    Signature validation happens upstream; this handler only extracts the
    sender and text and hands them to the MessageHandler.
    """
    if not From:
        logger.warning("Missing required parameter From")
        raise HTTPException(status_code=400, detail="Missing required parameter From")

    sender = From.replace("whatsapp:", "")
    text = Body.strip()

    if not text:
        logger.warning(f"No text content received from {sender}")
        return twiml_response(chunk_text(NO_MESSAGE_REPLY))

    try:
        reply = await message_handler.handle_inbound_message(sender, text)
        return twiml_response(reply.reply_segments)
    except Exception as e:
        logger.error(f"Error in WhatsApp webhook handler: {e}", exc_info=True)
        return twiml_response([UNEXPECTED_ERROR_REPLY], status_code=500)


def _to_model(order: OrderRecord) -> OrderModel:
    return OrderModel(id=order.id, created_at=order.created_at, **order.to_row())


@app.get("/orders/{site}", response_model=OrderListResponse)
async def get_orders_for_site(site: str) -> OrderListResponse:
    """List the orders for one site, newest first."""
    if not site.strip():
        raise HTTPException(status_code=400, detail="Site name is required")

    try:
        orders = await order_store.fetch_orders_by_site(site)
    except OrderStoreError as e:
        logger.error(f"Error retrieving orders for site {site}: {e}")
        raise HTTPException(status_code=503, detail="Error retrieving orders")

    logger.info(f"Orders retrieved for site {site}: {len(orders)}")
    return OrderListResponse(site=site, orders=[_to_model(order) for order in orders], count=len(orders))


@app.get("/sites", response_model=SiteListResponse)
async def list_sites() -> SiteListResponse:
    """List the sites that have orders."""
    try:
        sites = await order_store.list_sites()
    except OrderStoreError as e:
        logger.error(f"Error listing sites: {e}")
        raise HTTPException(status_code=503, detail="Error retrieving sites")

    return SiteListResponse(sites=sites, count=len(sites))


@app.post("/orders", response_model=OrderModel)
async def create_order(request: ManualOrderRequest) -> OrderModel:
    """Create an order by hand (testing and back-office use)."""
    order = OrderRecord(
        sender=request.phone_number,
        site=request.site.strip(),
        materials=[Material(name=m.name.strip(), quantity=m.quantity, unit=m.unit) for m in request.materials],
        delivery_date=request.delivery_date,
        delivery_time=request.delivery_time,
        status=request.status,
        completeness=1.0
    )

    if not await order_store.persist_order(order):
        raise HTTPException(status_code=500, detail="Error creating order")

    logger.info(f"Manual order created for site {order.site}")
    return _to_model(order)


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting WhatsApp Order Assistant API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
