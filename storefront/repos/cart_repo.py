# storefront/repos/cart_repo.py
from decimal import Decimal

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_items(self, user_id: str) -> list[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.user_id == user_id)
            .order_by(CartItemModel.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().unique().all())

    def get_item(self, user_id: str, product_id: str) -> CartItemModel | None:
        stmt = select(CartItemModel).where(
            CartItemModel.user_id == user_id,
            CartItemModel.product_id == product_id,
        )
        return self.db.execute(stmt).scalars().unique().one_or_none()

    def insert_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.commit()
        return item

    def increment_item(self, item_id: str, quantity: Decimal, weight_in_grams: int) -> int:
        #increment in SQL, not from the value read earlier
        stmt = (
            update(CartItemModel)
            .where(CartItemModel.id == item_id)
            .values(
                quantity=CartItemModel.quantity + quantity,
                weight_in_grams=CartItemModel.weight_in_grams + weight_in_grams,
            )
            .execution_options(synchronize_session=False)
        )
        rowcount = self.db.execute(stmt).rowcount
        self.db.commit()
        return rowcount

    def update_item(self, item_id: str, user_id: str, values: dict) -> int:
        stmt = (
            update(CartItemModel)
            .where(CartItemModel.id == item_id, CartItemModel.user_id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        rowcount = self.db.execute(stmt).rowcount
        self.db.commit()
        return rowcount

    def delete_item(self, item_id: str, user_id: str) -> int:
        stmt = (
            delete(CartItemModel)
            .where(CartItemModel.id == item_id, CartItemModel.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        rowcount = self.db.execute(stmt).rowcount
        self.db.commit()
        return rowcount

    def clear(self, user_id: str) -> int:
        stmt = (
            delete(CartItemModel)
            .where(CartItemModel.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        rowcount = self.db.execute(stmt).rowcount
        self.db.commit()
        return rowcount

    def rollback(self) -> None:
        self.db.rollback()
