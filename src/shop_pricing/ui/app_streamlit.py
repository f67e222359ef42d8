"""
Streamlit price simulator for the shop catalog.

Features:
- Quote a product at any quantity (or width × height for m² items)
- Attribute modifiers and line discount
- Resolution trace and cost breakdown with the advisory minimum price
- Storefront listing and tier overview
"""
import streamlit as st
import pandas as pd
import sys
from pathlib import Path
from datetime import datetime

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from shop_pricing.api.state import build_catalog_service
from shop_pricing.config.settings import get_settings
from shop_pricing.engine.measurements import area_from_attributes, build_m2_attributes, is_area_unit


st.set_page_config(
    page_title="Price Simulator",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_service():
    """Get cached catalog service."""
    return build_catalog_service()


try:
    service = get_service()
    settings = get_settings()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()

engine = service.engine
products = sorted(engine.snapshot.products.values(), key=lambda p: p.name.lower())


# ============================================================================
# SIDEBAR: Catalog status
# ============================================================================
with st.sidebar:
    st.header("📦 Catalog")
    stats = service.get_stats()
    st.metric("Products", stats['products'])
    st.metric("Active Promotions", stats['promotions_active'])
    st.caption(f"Data: {settings.data_dir}")

    if st.button("🔄 Reload Data"):
        service.reload()
        st.rerun()


st.title("Price Simulator")
st.caption(f"v1.0 | Pricing Engine Active | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2, tab3 = st.tabs(["⚡ Quote", "🛍️ Storefront", "📊 Tiers"])


# ============================================================================
# TAB 1: QUOTE
# ============================================================================
with tab1:
    if not products:
        st.info("No products loaded.")
        st.stop()

    col1, col2 = st.columns([1.4, 1.6], gap="large")

    with col1:
        labels = {f"{p.name} ({p.sku or p.id})": p for p in products}
        selected = labels[st.selectbox("Product", options=list(labels))]

        if is_area_unit(selected.unit):
            c1, c2 = st.columns(2)
            width = c1.number_input("Width (cm)", min_value=0.0, value=100.0, step=10.0)
            height = c2.number_input("Height (cm)", min_value=0.0, value=100.0, step=10.0)
            area = area_from_attributes(build_m2_attributes({}, width_cm=width, height_cm=height))
            quantity = area or 0.0
            st.caption(f"Area: {quantity:.4f} m²")
        else:
            quantity = st.number_input(
                "Quantity", min_value=1, value=selected.minimum_quantity, step=1
            )

        options = {
            f"{a.attribute_value_id} ({a.price_modifier:+.2f})": a.attribute_value_id
            for a in engine.snapshot.attributes if a.product_id == selected.id
        }
        chosen = st.multiselect("Attributes", options=list(options)) if options else []
        discount = st.number_input("Line discount", min_value=0.0, value=0.0, step=1.0)
        storefront = st.checkbox("Storefront pricing", value=False)

    with col2:
        quote = service.quote(
            selected.id, quantity, [options[c] for c in chosen], discount, catalog=storefront
        )

        with st.container(border=True):
            m1, m2, m3 = st.columns(3)
            m1.metric("Unit Price", f"${quote.unit_price:,.2f}")
            m2.metric("Line Total", f"${quote.extended_price:,.2f}")
            m3.metric("Source", quote.source.title())

            if quote.promotion_active:
                st.markdown(f":green[**Promotion! Regular price ${quote.base_unit_price:,.2f}**]")

            for error in service.validate_quantity(selected, quantity):
                st.error(error)
            for warning in quote.warnings:
                st.warning(warning)

        with st.expander("🔍 Resolution Details", expanded=True):
            for t in quote.trace:
                if t.value:
                    st.caption(f"**{t.step}**: {t.description} = `{t.value}`")
                else:
                    st.caption(f"**{t.step}**: {t.description}")

        with st.expander("💰 Cost Breakdown"):
            costs = engine.cost_breakdown(selected)
            st.dataframe(pd.DataFrame([
                {'Item': 'Base cost', 'Value': costs.base_cost},
                {'Item': 'Supplies', 'Value': costs.supplies_cost},
                {'Item': 'Labor', 'Value': costs.labor_cost},
                {'Item': 'Total cost', 'Value': costs.total_cost},
                {'Item': 'Cost with waste', 'Value': costs.cost_with_waste},
                {'Item': 'Suggested price', 'Value': costs.suggested_price},
                {'Item': 'Minimum resale price', 'Value': costs.min_resale_price},
            ]), use_container_width=True, hide_index=True)

            lines = service.supply_lines(selected.id)
            if lines:
                st.caption("Supplies per unit")
                st.dataframe(pd.DataFrame(lines), use_container_width=True, hide_index=True)


# ============================================================================
# TAB 2: STOREFRONT
# ============================================================================
with tab2:
    st.subheader("🛍️ Public Catalog")
    listing = service.public_catalog()
    if listing:
        st.dataframe(pd.DataFrame(listing), use_container_width=True, hide_index=True)
    else:
        st.info("No products are published to the storefront.")


# ============================================================================
# TAB 3: TIERS
# ============================================================================
with tab3:
    st.subheader("📊 Quantity Tiers")
    rows = []
    for tier in engine.snapshot.tiers:
        product = engine.get_product(tier.product_id)
        rows.append({
            'Product': product.name if product else tier.product_id,
            'Range': tier.label(),
            'Price': tier.price,
        })
    if rows:
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
    else:
        st.info("No tiers configured.")
