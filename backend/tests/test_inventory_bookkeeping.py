import logging

import pytest
from sqlalchemy import select, func

from backend.app.db.models.models_v1 import (
    InventoryMovement,
    Reception,
    ReceptionDetail,
    Output,
    OutputDetail,
)
from backend.app.db.models.core_types import (
    MovementType,
    ReceptionStatus,
    ReceptionDetailStatus,
    OutputStatus,
    OutputDetailStatus,
    DestinationType,
    AdjustmentDirection,
    AdjustmentReason,
)
from backend.services.inventory import (
    apply_stock_movement,
    receive_detail,
    issue_output_detail,
    complete_output,
    adjust_stock,
)


def _movement_sum(db, product_id):
    return db.execute(
        select(func.coalesce(func.sum(InventoryMovement.quantity), 0))
        .where(InventoryMovement.product_id == product_id)
    ).scalar_one()


def _reception(db, supplier, code="REC-1"):
    rec = Reception(code=code, supplier_id=supplier.id, status=ReceptionStatus.completed)
    db.add(rec)
    db.flush()
    return rec


def _output(db, code="SAL-1", status=OutputStatus.pending):
    out = Output(code=code, destination="Planta", destination_type=DestinationType.department, status=status)
    db.add(out)
    db.flush()
    return out


def test_opening_stock_is_recorded_as_adjustment(db_session, product):
    movements = db_session.execute(
        select(InventoryMovement).where(InventoryMovement.product_id == product.id)
    ).scalars().all()

    assert product.current_stock == 8
    assert len(movements) == 1
    assert movements[0].movement_type == MovementType.adjustment
    assert movements[0].notes == "Opening balance"


def test_completed_reception_detail_adds_stock(db_session, supplier, product):
    """
    GIVEN une ligne de réception completed de 20
    THEN stock 8 -> 28 et mouvement reception +20 référencé sur la réception
    """
    rec = _reception(db_session, supplier)
    d = ReceptionDetail(
        reception_id=rec.id,
        product_id=product.id,
        quantity_expected=20,
        quantity_received=20,
        unit="unidad",
        status=ReceptionDetailStatus.completed,
    )
    db_session.add(d)
    db_session.flush()

    mv = receive_detail(db_session, rec, d)
    db_session.commit()

    assert product.current_stock == 28
    assert mv.quantity == 20
    assert mv.movement_type == MovementType.reception
    assert mv.reference_type == "reception"
    assert mv.reference_id == rec.id
    assert mv.notes == "Reception REC-1"


@pytest.mark.parametrize("status", [ReceptionDetailStatus.pending, ReceptionDetailStatus.rejected])
def test_non_stocked_reception_detail_is_ignored(db_session, supplier, product, status):
    rec = _reception(db_session, supplier)
    d = ReceptionDetail(
        reception_id=rec.id,
        product_id=product.id,
        quantity_expected=20,
        quantity_received=20,
        unit="unidad",
        status=status,
    )
    db_session.add(d)
    db_session.flush()

    assert receive_detail(db_session, rec, d) is None
    assert product.current_stock == 8
    assert _movement_sum(db_session, product.id) == 8


def test_issue_output_detail_allows_negative_stock(db_session, product, caplog):
    out = _output(db_session)
    d = OutputDetail(output_id=out.id, product_id=product.id, quantity=10, unit="unidad")
    db_session.add(d)
    db_session.flush()

    with caplog.at_level(logging.WARNING, logger="backend.services.inventory"):
        mv = issue_output_detail(db_session, out, d)
    db_session.commit()

    assert product.current_stock == -2
    assert mv.quantity == -10
    assert mv.movement_type == MovementType.output
    assert mv.notes == "Output SAL-1"
    assert d.status == OutputDetailStatus.completed
    assert "Negative stock" in caplog.text


def test_complete_output_issues_only_pending_details(db_session, make_product):
    a = make_product("A", stock=50)
    b = make_product("B", stock=50)
    out = _output(db_session)
    done = OutputDetail(output_id=out.id, product_id=a.id, quantity=5, unit="unidad",
                        status=OutputDetailStatus.completed)
    todo = OutputDetail(output_id=out.id, product_id=b.id, quantity=7, unit="unidad")
    db_session.add_all([done, todo])
    db_session.flush()

    movements = complete_output(db_session, out)
    db_session.commit()

    assert len(movements) == 1
    assert a.current_stock == 50  # déjà sortie, pas retouchée
    assert b.current_stock == 43
    assert todo.status == OutputDetailStatus.completed

    # Second passage : plus rien à sortir
    assert complete_output(db_session, out) == []
    assert b.current_stock == 43


def test_adjust_stock_decrease_writes_signed_movement(db_session, product):
    mv = adjust_stock(
        db_session,
        product,
        direction=AdjustmentDirection.decrease,
        quantity=3,
        reason=AdjustmentReason.damage,
        notes="caja rota",
    )
    db_session.commit()

    assert mv.quantity == -3
    assert mv.movement_type == MovementType.adjustment
    assert mv.notes == "Adjustment (damage): caja rota"
    assert product.current_stock == 5


def test_adjust_stock_rejects_non_positive_quantity(db_session, product):
    with pytest.raises(ValueError):
        adjust_stock(
            db_session,
            product,
            direction=AdjustmentDirection.increase,
            quantity=0,
            reason=AdjustmentReason.correction,
        )


def test_zero_movement_is_rejected(db_session, product):
    with pytest.raises(ValueError):
        apply_stock_movement(db_session, product=product, quantity=0, movement_type=MovementType.adjustment)
    assert product.current_stock == 8


def test_current_stock_matches_movement_history(db_session, supplier, product):
    rec = _reception(db_session, supplier)
    d = ReceptionDetail(
        reception_id=rec.id,
        product_id=product.id,
        quantity_expected=30,
        quantity_received=12.5,
        unit="unidad",
        status=ReceptionDetailStatus.partial,
    )
    db_session.add(d)
    db_session.flush()
    receive_detail(db_session, rec, d)

    out = _output(db_session, status=OutputStatus.completed)
    od = OutputDetail(output_id=out.id, product_id=product.id, quantity=4, unit="unidad")
    db_session.add(od)
    db_session.flush()
    issue_output_detail(db_session, out, od)

    adjust_stock(
        db_session,
        product,
        direction=AdjustmentDirection.increase,
        quantity=1.5,
        reason=AdjustmentReason.inventory_count,
    )
    db_session.commit()

    assert product.current_stock == pytest.approx(18.0)
    assert _movement_sum(db_session, product.id) == pytest.approx(product.current_stock)
