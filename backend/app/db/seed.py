from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db.base import utcnow
from backend.app.db.session import SessionLocal
from backend.app.db.models.models_v1 import (
    User,
    Supplier,
    Product,
    Requirement,
    RequirementDetail,
    PurchaseOrder,
    PurchaseOrderDetail,
    Reception,
    ReceptionDetail,
    Output,
    OutputDetail,
    Invoice,
)
from backend.app.db.models.core_types import (
    Role,
    RequirementStatus,
    Priority,
    POStatus,
    ReceptionStatus,
    ReceptionDetailStatus,
    OutputStatus,
    OutputDetailStatus,
    DestinationType,
    InvoiceStatus,
    ActivityType,
)
from backend.services.activity import log_activity
from backend.services.inventory import open_product_stock, receive_detail, issue_output_detail
from backend.services.procurement import line_total, recompute_po_total

logger = logging.getLogger(__name__)

SUPPLIERS = [
    dict(name="Aceros Industriales", contact="Juan Pérez", email="juan@aceros.com", phone="555-1234",
         address="Calle Industrial 123", tax_id="AI12345", notes="Proveedor principal de materiales metálicos"),
    dict(name="Electrónicos SA", contact="María López", email="maria@electronicos.com", phone="555-5678",
         address="Av. Tecnología 456", tax_id="ES67890", notes="Componentes electrónicos"),
    dict(name="Químicos Unidos", contact="Pedro Ramírez", email="pedro@quimicos.com", phone="555-9012",
         address="Blvd. Ciencia 789", tax_id="QU34567", notes="Productos químicos industriales"),
]

# (code, name, category, unit, min_stock, stock d'ouverture, location, cost, index fournisseur)
PRODUCTS = [
    ("TH-5-16", "Tornillos hexagonales 5/16", "Ferretería", "unidad", 25, 8, "A-101", 0.5, 0),
    ("CE-12AWG", "Cables eléctricos 12AWG", "Eléctricos", "metro", 50, 15, "B-202", 1.2, 1),
    ("LI-TIPO-A", "Lubricante industrial tipo A", "Químicos", "litro", 5, 2, "C-303", 25.0, 2),
    ("TU-PVC-2", 'Tubería PVC 2"', "Plomería", "metro", 30, 45, "D-404", 3.75, 0),
    ("FO-LED-20W", "Focos LED 20W", "Eléctricos", "unidad", 15, 28, "B-205", 8.5, 1),
]


def ensure_admin(db: Session) -> User:
    user = db.scalar(select(User).where(User.username == "admin"))
    if not user:
        user = User(
            username="admin",
            password="admin123",  # TODO: hash quand l'authentification sera branchée
            full_name="Administrator",
            role=Role.admin,
            department="IT",
            email="admin@logierp.com",
        )
        db.add(user)
        db.flush()
    return user


def seed_demo_data(db: Session) -> bool:
    """
    Jeu de démo (fournisseurs, produits, cycle d'achat complet).
    Les mouvements de stock passent par services.inventory, comme via l'API.
    Retourne False si des fournisseurs existent déjà (rien n'est fait).
    """
    if db.scalar(select(Supplier.id).limit(1)):
        return False

    admin = ensure_admin(db)
    now = utcnow()
    day = timedelta(days=1)

    suppliers = [Supplier(**s) for s in SUPPLIERS]
    db.add_all(suppliers)
    db.flush()

    products = []
    for code, name, category, unit, min_stock, opening, location, cost, sup in PRODUCTS:
        p = Product(
            code=code,
            name=name,
            category=category,
            unit=unit,
            min_stock=min_stock,
            current_stock=0,
            location=location,
            cost=cost,
            supplier_id=suppliers[sup].id,
        )
        db.add(p)
        db.flush()
        open_product_stock(db, p, opening, created_by=admin.id)
        products.append(p)

    # ---------- Besoins ----------
    requirements = [
        Requirement(code="REQ-2023-001", title="Materiales para mantenimiento", requestor_id=admin.id,
                    department_id="Mantenimiento", status=RequirementStatus.pending, priority=Priority.high,
                    notes="Urgente para reparación de maquinaria", due_date=now + 3 * day),
        Requirement(code="REQ-2023-002", title="Insumos eléctricos", requestor_id=admin.id,
                    department_id="Producción", status=RequirementStatus.approved, priority=Priority.medium,
                    notes="Para actualización de panel eléctrico", due_date=now + 5 * day),
        Requirement(code="REQ-2023-003", title="Materiales de oficina", requestor_id=admin.id,
                    department_id="Administración", status=RequirementStatus.completed, priority=Priority.low,
                    notes="Reposición de inventario de oficina", due_date=now + 10 * day),
    ]
    db.add_all(requirements)
    db.flush()

    for req, prod, qty, status in (
        (0, 0, 50, RequirementStatus.pending),
        (0, 2, 10, RequirementStatus.pending),
        (1, 1, 100, RequirementStatus.approved),
        (1, 4, 30, RequirementStatus.approved),
        (2, 3, 20, RequirementStatus.completed),
    ):
        db.add(RequirementDetail(
            requirement_id=requirements[req].id,
            product_id=products[prod].id,
            quantity=qty,
            unit=products[prod].unit,
            status=status,
        ))

    # ---------- Commandes ----------
    orders = [
        PurchaseOrder(code="OC-2023-001", title="Compra de tornillos y lubricantes", supplier_id=suppliers[0].id,
                      requirement_id=requirements[0].id, status=POStatus.pending, notes="Entrega urgente",
                      expected_delivery_date=now + 2 * day, created_by=admin.id),
        PurchaseOrder(code="OC-2023-002", title="Compra de materiales eléctricos", supplier_id=suppliers[1].id,
                      requirement_id=requirements[1].id, status=POStatus.confirmed, notes="Entrega parcial aceptada",
                      expected_delivery_date=now + 7 * day, created_by=admin.id),
        PurchaseOrder(code="OC-2023-003", title="Compra de tuberías", supplier_id=suppliers[0].id,
                      requirement_id=requirements[2].id, status=POStatus.completed, notes="Entrega completada",
                      expected_delivery_date=now - 3 * day, created_by=admin.id),
    ]
    db.add_all(orders)
    db.flush()

    po_lines = []
    for po, prod, qty, price in ((0, 0, 50, 0.5), (0, 2, 5, 25.0), (1, 1, 100, 1.2), (1, 4, 30, 8.5), (2, 3, 20, 3.75)):
        line = PurchaseOrderDetail(
            purchase_order_id=orders[po].id,
            product_id=products[prod].id,
            quantity=qty,
            unit=products[prod].unit,
            unit_price=price,
            total_price=line_total(qty, price),
        )
        db.add(line)
        po_lines.append(line)
    for po in orders:
        recompute_po_total(db, po)

    # ---------- Réceptions ----------
    receptions = [
        Reception(code="REC-2023-001", purchase_order_id=orders[2].id, supplier_id=suppliers[0].id,
                  status=ReceptionStatus.completed, notes="Recepción completa y en buenas condiciones",
                  received_by=admin.id, received_at=now - 2 * day),
        Reception(code="REC-2023-002", purchase_order_id=orders[1].id, supplier_id=suppliers[1].id,
                  status=ReceptionStatus.partial, notes="Recepción parcial, pendiente el resto",
                  received_by=admin.id, received_at=now - day),
        Reception(code="REC-2023-003", purchase_order_id=orders[0].id, supplier_id=suppliers[0].id,
                  status=ReceptionStatus.scheduled, notes="Programada para mañana",
                  received_by=admin.id, received_at=now + day),
    ]
    db.add_all(receptions)
    db.flush()

    for rec, line, expected, received, status in (
        (0, 4, 20, 20, ReceptionDetailStatus.completed),
        (1, 2, 100, 75, ReceptionDetailStatus.partial),
        (1, 3, 30, 30, ReceptionDetailStatus.completed),
    ):
        d = ReceptionDetail(
            reception_id=receptions[rec].id,
            purchase_order_detail_id=po_lines[line].id,
            product_id=po_lines[line].product_id,
            quantity_expected=expected,
            quantity_received=received,
            unit=po_lines[line].unit,
            status=status,
        )
        db.add(d)
        db.flush()
        receive_detail(db, receptions[rec], d, created_by=admin.id)

    # ---------- Sorties ----------
    outputs = [
        Output(code="SAL-2023-001", destination="Planta de Producción", destination_type=DestinationType.department,
               status=OutputStatus.completed, notes="Para reparación de tuberías",
               requested_by=admin.id, approved_by=admin.id),
        Output(code="SAL-2023-002", destination="Área de Oficinas", destination_type=DestinationType.department,
               status=OutputStatus.completed, notes="Para renovación de iluminación",
               requested_by=admin.id, approved_by=admin.id),
        Output(code="SAL-2023-003", destination="Departamento de Mantenimiento",
               destination_type=DestinationType.department, status=OutputStatus.pending,
               notes="Para reparaciones generales", requested_by=admin.id),
    ]
    db.add_all(outputs)
    db.flush()

    for out, prod, qty in ((0, 3, 5), (1, 4, 10), (2, 0, 2), (2, 2, 1)):
        d = OutputDetail(
            output_id=outputs[out].id,
            product_id=products[prod].id,
            quantity=qty,
            unit=products[prod].unit,
            status=OutputDetailStatus.pending,
        )
        db.add(d)
        db.flush()
        if outputs[out].status == OutputStatus.completed:
            issue_output_detail(db, outputs[out], d, created_by=admin.id)

    # ---------- Factures ----------
    db.add_all([
        Invoice(code="INV-2023-001", supplier_invoice_number="F-12345", supplier_id=suppliers[0].id,
                purchase_order_id=orders[2].id, amount=75.0, status=InvoiceStatus.paid,
                issue_date=now - 5 * day, due_date=now - day, notes="Pagado por transferencia"),
        Invoice(code="INV-2023-002", supplier_invoice_number="F-23456", supplier_id=suppliers[1].id,
                purchase_order_id=orders[1].id, amount=375.0, status=InvoiceStatus.pending,
                issue_date=now - 2 * day, due_date=now + 3 * day, notes="Pendiente de pago"),
        Invoice(code="INV-2023-003", supplier_invoice_number="F-34567", supplier_id=suppliers[2].id,
                amount=150.0, status=InvoiceStatus.pending,
                issue_date=now - day, due_date=now + 6 * day, notes="Compra fuera de sistema"),
    ])

    # ---------- Journal ----------
    for activity_type, description, entity_type, entity in (
        (ActivityType.create, "Created purchase order OC-2023-001", "purchase_order", orders[0]),
        (ActivityType.update, "Updated purchase order OC-2023-002 (pending -> confirmed)", "purchase_order", orders[1]),
        (ActivityType.create, "Created reception REC-2023-001", "reception", receptions[0]),
        (ActivityType.create, "Created output SAL-2023-001", "output", outputs[0]),
        (ActivityType.create, "Created output SAL-2023-002", "output", outputs[1]),
        (ActivityType.create, "Created requirement REQ-2023-001", "requirement", requirements[0]),
    ):
        log_activity(
            db,
            user_id=admin.id,
            activity_type=activity_type,
            description=description,
            entity_type=entity_type,
            entity_id=entity.id,
        )

    db.flush()
    logger.info("Demo data seeded: %d suppliers, %d products", len(suppliers), len(products))
    return True


def run_seed():
    db = SessionLocal()
    try:
        ensure_admin(db)
        seeded = seed_demo_data(db)
        db.commit()
        print(f"SEED OK: user=admin, demo_data={'loaded' if seeded else 'already present'}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    run_seed()
