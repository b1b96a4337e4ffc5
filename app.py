from datetime import datetime, timezone

import streamlit as st
import pandas as pd
import plotly.express as px

from crypto_compass.config import (
    PORTFOLIO_TEMPLATES, DEFAULT_TEMPLATE, COIN_OPTIONS, TIME_OPTIONS, DEFAULT_TIME_INDEX,
    BUILDER_AMOUNT_PRESETS, SIMULATOR_AMOUNT_PRESETS, LISTING_SIZES, PRICE_MAP_SIZE, Settings,
)
from crypto_compass.allocation import allocation_total, build_price_map, calculate_allocations, parse_amount
from crypto_compass.engine import fetch_markets, history_frame, last_updated_label, market_frame
from crypto_compass.formatting import (
    PLACEHOLDER, format_currency, format_market_cap, format_percentage, format_price,
    format_signed_currency, format_units,
)
from crypto_compass.logging_config import setup_logging
from crypto_compass.refresh import RequestSequencer, ResourceState, Stamped
from crypto_compass.simulator import run_simulation

st.set_page_config(page_title="CryptoCompass", page_icon="🧭", layout="wide")

settings = Settings.from_secrets(st.secrets)
setup_logging(settings)

st.title("🧭 CryptoCompass")
st.caption("Navigate the crypto market")

# --- Sidebar controls ---
st.sidebar.header("Settings")
count = st.sidebar.radio("Listing", LISTING_SIZES, format_func=lambda n: f"Top {n}", horizontal=True)
simple_mode = st.sidebar.toggle("🌱 Simple mode", True, help="Turn off for advanced metrics")

# --- Per-session refresh state ---
if "sequencer" not in st.session_state:
    st.session_state["sequencer"] = RequestSequencer()
for name in ("listing", "prices", "history"):
    if f"{name}_state" not in st.session_state:
        st.session_state[f"{name}_state"] = ResourceState(name, st.session_state["sequencer"])
listing_state = st.session_state["listing_state"]
prices_state = st.session_state["prices_state"]
history_state = st.session_state["history_state"]


@st.cache_data(ttl=settings.listing_refresh_seconds, show_spinner=False)
def load_listing(limit, _settings):
    return Stamped(fetch_markets(limit, _settings), datetime.now(timezone.utc))


@st.cache_data(ttl=settings.price_refresh_seconds, show_spinner=False)
def load_price_listing(limit, _settings):
    prices = build_price_map(fetch_markets(limit, _settings))
    return Stamped(prices, datetime.now(timezone.utc))


# Each new coin/window pair misses the cache and refetches the whole window;
# revisiting a pair within the TTL reuses that fetch to stay under rate limits.
@st.cache_data(ttl=settings.price_refresh_seconds, show_spinner=False)
def load_simulation(cid, days, amount, _settings):
    return run_simulation(cid, days, amount, _settings)


def _change_color(text):
    if text.startswith("+"):
        return "color: #4ade80"
    if text.startswith("-"):
        return "color: #f87171"
    return ""


# --- Explanatory notes ---
with st.expander("How to use this dashboard"):
    st.markdown("""
**Market table**
- Ranked by market cap, refreshed every few minutes or via *Refresh*
- *Simple mode* shows price, 24h change and market cap; advanced adds 7d change, volume and a 7-day trend

**Portfolio Builder**
- Pick a strategy, enter an amount; units are computed from live prices
- A dash in the price column means the price is unknown, not that the coin is free

**What If Simulator**
- Buy-and-hold from the first to the last price in the chosen window

**Limitations**
- CoinGecko rate limits apply; failed refreshes keep the last good data on screen
- Not financial advice
""")


# --- Market listing ---
@st.fragment(run_every=settings.listing_refresh_seconds)
def market_listing():
    head, ctrl = st.columns([5, 1])
    with head:
        st.subheader(f"Top {count} Cryptocurrencies")
        st.caption("Simplified view for beginners" if simple_mode else "Advanced metrics for experienced traders")
    with ctrl:
        if st.button("🔄 Refresh", use_container_width=True):
            load_listing.clear()

    with st.spinner("Loading cryptocurrency data..."):
        listing_state.refresh(lambda: load_listing(count, settings))

    if listing_state.last_updated:
        ctrl.caption(last_updated_label(listing_state.last_updated))
    if listing_state.error:
        st.error(f"⚠️ {listing_state.error}. Please try again.")
    if not listing_state.has_value:
        return

    df = market_frame(listing_state.value)
    view = pd.DataFrame({
        "#": df["Rank"],
        "Name": df["Name"],
        "Symbol": df["Symbol"],
        "Price": df["Price"].map(format_price),
        "24h %": df["Change_24h"].map(format_percentage),
        "7d %": df["Change_7d"].map(format_percentage),
        "Market Cap": df["MktCap"].map(format_market_cap),
        "Volume (24h)": df["Vol24h"].map(format_market_cap),
        "Last 7 Days": df["Last_7d"],
    })
    show_cols = ["#", "Name", "Symbol", "Price", "24h %", "Market Cap"]
    if not simple_mode:
        show_cols = ["#", "Name", "Symbol", "Price", "24h %", "7d %", "Market Cap", "Volume (24h)", "Last 7 Days"]
    styled = view[show_cols].style.map(_change_color, subset=[c for c in ("24h %", "7d %") if c in show_cols])
    st.dataframe(
        styled,
        use_container_width=True,
        hide_index=True,
        column_config={
            "#": st.column_config.NumberColumn("#", format="%d"),
            "Last 7 Days": st.column_config.LineChartColumn("Last 7 Days"),
        },
    )
    st.download_button(
        "Download market table (CSV)",
        df.drop(columns=["Last_7d"]).to_csv(index=False),
        file_name=f"top_{count}_markets.csv",
        mime="text/csv",
    )


market_listing()

if not listing_state.has_value:
    st.stop()


# --- Portfolio builder ---
@st.fragment(run_every=settings.price_refresh_seconds)
def portfolio_builder():
    st.markdown("---")
    st.header("Portfolio Builder")
    st.caption("Create your crypto investment strategy")

    prices_state.refresh(lambda: load_price_listing(PRICE_MAP_SIZE, settings))

    keys = list(PORTFOLIO_TEMPLATES)
    template_key = st.radio(
        "Strategy", keys, index=keys.index(DEFAULT_TEMPLATE), horizontal=True,
        format_func=lambda k: f"{PORTFOLIO_TEMPLATES[k].name} · {PORTFOLIO_TEMPLATES[k].risk}",
    )
    template = PORTFOLIO_TEMPLATES[template_key]
    st.caption(template.description)

    alloc_df = pd.DataFrame([
        {"Strategy": template.name, "Symbol": a.symbol, "Percentage": a.percentage, "Label": f"{a.symbol} {a.percentage:g}%"}
        for a in template.allocations
    ])
    fig = px.bar(
        alloc_df, x="Percentage", y="Strategy", color="Symbol", orientation="h", text="Label",
        color_discrete_map={a.symbol: a.color for a in template.allocations},
    )
    fig.update_layout(height=140, showlegend=False, margin=dict(l=0, r=0, t=10, b=10),
                      xaxis=dict(visible=False, range=[0, 100]), yaxis=dict(visible=False))
    st.plotly_chart(fig, use_container_width=True)

    # Presets write to session state before the input is built so it picks them up
    if "builder_amount" not in st.session_state:
        st.session_state["builder_amount"] = "1000"
    preset_cols = st.columns(len(BUILDER_AMOUNT_PRESETS))
    for col, preset in zip(preset_cols, BUILDER_AMOUNT_PRESETS):
        if col.button(f"${preset:,}", key=f"builder_preset_{preset}"):
            st.session_state["builder_amount"] = str(preset)
    raw_amount = st.text_input("💵 Investment amount ($)", key="builder_amount")

    if prices_state.error:
        st.error(f"⚠️ {prices_state.error}. Prices will retry on the next refresh.")
    if not prices_state.has_value:
        st.info("Loading current prices...")
        return

    calculated = calculate_allocations(raw_amount, template, prices_state.value)
    if not calculated:
        if parse_amount(raw_amount) <= 0:
            st.caption("Enter a positive amount to see your breakdown.")
        return

    st.subheader("📈 Your Portfolio Breakdown")
    st.dataframe(
        pd.DataFrame([{
            "Symbol": c.symbol,
            "Name": c.name,
            "Alloc %": c.percentage,
            "Amount": f"${c.amount:,.2f}",
            "Current Price": format_price(c.current_price) if c.has_price else PLACEHOLDER,
            "Quantity": format_units(c.quantity, c.symbol) if c.has_price else PLACEHOLDER,
        } for c in calculated]),
        use_container_width=True,
        hide_index=True,
        column_config={"Alloc %": st.column_config.NumberColumn("Alloc %", format="%.0f%%")},
    )
    st.metric("Total Investment", f"${allocation_total(calculated):,.2f}")
    st.warning("**Disclaimer:** This is not financial advice. Cryptocurrency investments carry risk. "
               "Always do your own research and never invest more than you can afford to lose.")


portfolio_builder()


# --- What-if simulator ---
st.markdown("---")
st.header("What If Simulator")
st.caption("See what your investment would be worth today")

left, right = st.columns(2)
with left:
    coin = st.radio("Select cryptocurrency", COIN_OPTIONS, format_func=lambda c: c.symbol, horizontal=True)
    window = st.radio("Time period", TIME_OPTIONS, index=DEFAULT_TIME_INDEX,
                      format_func=lambda t: t.label, horizontal=True)
    preset_amount = st.radio("Investment amount (USD)", SIMULATOR_AMOUNT_PRESETS, index=2,
                             format_func=lambda a: f"${a:,}", horizontal=True)
    custom_amount = st.text_input("Or enter custom amount...", key="sim_custom")
    # a valid custom amount wins over the preset
    amount = parse_amount(custom_amount) or float(preset_amount)

with right:
    with st.spinner("Calculating..."):
        history_state.refresh(lambda: load_simulation(coin.id, window.days, amount, settings))

    if history_state.error:
        st.error(f"{history_state.error}. Try again.")
    elif history_state.has_value:
        samples, result = history_state.value
        st.caption(f"If you invested {format_currency(amount)} in {coin.symbol} {window.label} ago")
        pct = f"{'+' if result.is_profit else ''}{result.profit_percent:.1f}%"
        st.metric(
            "Worth today", format_currency(result.current_value),
            delta=f"{format_signed_currency(result.profit, result.is_profit)} ({pct})",
        )
        c1, c2 = st.columns(2)
        c1.metric("Price then", format_price(result.initial_price))
        c2.metric("Price now", format_price(result.current_price))
        c3, c4 = st.columns(2)
        c3.metric("You would own", format_units(result.units_owned, coin.symbol))
        c4.metric("Price change", f"{'+' if result.is_profit else ''}{result.price_change_percent:.1f}%")

        fig = px.line(history_frame(samples), x="Date", y="Price")
        fig.update_traces(line_color="#4ade80" if result.is_profit else "#f87171")
        fig.update_layout(height=260, margin=dict(l=0, r=0, t=10, b=0))
        st.plotly_chart(fig, use_container_width=True)
        st.caption("Past performance doesn't guarantee future results. Not financial advice.")


# --- Info cards for simple mode ---
if simple_mode:
    st.markdown("---")
    cards = [
        ("📊", "What is Market Cap?",
         "Market cap = Price × Total coins. Higher market cap usually means more stable and established."),
        ("📈", "24h Change",
         "Shows how much the price changed in the last 24 hours. Green = up, Red = down."),
        ("🎯", f"Why Top {count}?",
         "Top cryptocurrencies by market cap are generally considered safer for beginners."),
    ]
    for col, (emoji, title, text) in zip(st.columns(3), cards):
        with col:
            st.markdown(f"### {emoji}\n**{title}**\n\n{text}")

st.caption("Data provided by CoinGecko API • Prices update every minute, listings every 5 minutes • Not financial advice")
