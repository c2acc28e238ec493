from sqlalchemy.orm import Session

from app.models.order import Order


class OrderService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, order_id: str) -> Order | None:
        return self.db.query(Order).filter(Order.id == order_id).one_or_none()

    def get_for_update(self, order_id: str) -> Order | None:
        return (
            self.db.query(Order)
            .filter(Order.id == order_id)
            .with_for_update()
            .one_or_none()
        )

    def delete(self, order: Order) -> None:
        """Delete order; details and the linked transaction go with it (ORM cascade)."""
        self.db.delete(order)
        self.db.commit()
