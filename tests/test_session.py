import asyncio
from decimal import Decimal

from synth_trader.execution.adapter import PaperExchangeClient, StaticWallet
from synth_trader.execution.models import CurrencyPair, OrderType, SubmitState, TxStatus
from tests.conftest import SBTC, SUSD, WALLET_ADDRESS


class RecordingSignal:
    def __init__(self):
        self.requests = 0

    def request_gas_price_editor(self):
        self.requests += 1


def test_gas_price_editor_request_is_forwarded(make_session):
    signal = RecordingSignal()

    async def scenario():
        session = make_session(ui_signal=signal)
        session.request_gas_price_editor()
        session.request_gas_price_editor()
        make_session().request_gas_price_editor()

    asyncio.run(scenario())

    assert signal.requests == 2


def test_network_fee_breakdown(make_session):
    async def scenario():
        session = make_session()
        session.edit_quote("100")
        await session.settle()
        return session.network_fee()

    fee = asyncio.run(scenario())

    assert fee.gas_limit == 205000
    assert fee.gas_price_gwei == Decimal("1")
    assert fee.eth_cost == Decimal("0.000205")
    assert fee.usd_cost == Decimal("0.41")
    assert fee.exchange_fee_percent == Decimal("0.3")
    assert fee.exchange_fee_usd == Decimal("0.3")


def test_connecting_wallet_triggers_waiting_period_check(make_session, exchange, wallet):
    wallet.current_address = None
    exchange.waiting_periods[(WALLET_ADDRESS, "sUSD")] = 75

    async def scenario():
        session = make_session()
        session.edit_quote("100")
        await session.settle()
        assert session.fee_reclamation_error is None

        wallet.current_address = WALLET_ADDRESS
        session.refresh()
        await session.settle()
        return session

    session = asyncio.run(scenario())

    assert "1:15" in session.fee_reclamation_error
    assert not session.can_submit()


def test_use_fraction_through_session(make_session):
    async def scenario():
        session = make_session()
        amounts = session.use_fraction(25)
        await session.settle()
        return session, amounts

    session, amounts = asyncio.run(scenario())

    assert amounts.quote_amount == Decimal("250")
    assert session.gas.locked


def test_paper_trading_end_to_end(rates, balances, ledger, limit_orders):
    exchange = PaperExchangeClient(
        fee_rates={("sUSD", "sBTC"): Decimal("0.005")}, gas_estimate=180000
    )
    wallet = StaticWallet(current_address=WALLET_ADDRESS, current_wallet_kind="walletconnect")

    async def scenario():
        from synth_trader.order_form.session import OrderFormSession

        session = OrderFormSession(
            CurrencyPair(base=SBTC, quote=SUSD),
            exchange=exchange,
            limit_orders=limit_orders,
            ledger=ledger,
            rates=rates,
            balances=balances,
            wallet=wallet,
        )
        session.refresh()
        session.edit_base("0.01")
        await session.settle()
        assert session.amounts.quote_amount == Decimal("400")
        assert session.pipeline.fee_rate.percent == Decimal("0.5")
        market = await session.submit()

        session.set_order_type(OrderType.LIMIT)
        session.edit_limit_price("39000")
        limit = await session.submit()
        return session, market, limit

    session, market, limit = asyncio.run(scenario())

    assert market.state == SubmitState.SUCCEEDED
    assert limit.state == SubmitState.SUCCEEDED
    assert [r.status for r in ledger.records()] == [TxStatus.PENDING]
    assert ledger.records()[0].to_amount == Decimal("0.01")
    assert exchange.submitted[0].gas.gas_limit == 185000
    assert limit_orders.submitted[0].limit_price == Decimal("39000")
    assert session.metrics.snapshot()["submissions_succeeded"] == 2
