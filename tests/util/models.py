""" Models used in tests: orders and their items """

from datetime import datetime, timedelta

import sqlalchemy as sa
import sqlalchemy.orm


Base = sa.orm.declarative_base()


class Order(Base):
    __tablename__ = 'orders'

    id = sa.Column(sa.Integer, primary_key=True)
    remark = sa.Column(sa.String(30), nullable=True)
    created_at = sa.Column(sa.DateTime, nullable=False)

    items = sa.orm.relationship('Item', back_populates='order')


class Item(Base):
    __tablename__ = 'items'

    id = sa.Column(sa.Integer, primary_key=True)
    name = sa.Column(sa.String(30), nullable=False)
    remark = sa.Column(sa.String(30), nullable=True)
    order_id = sa.Column(sa.ForeignKey(Order.id), nullable=False)

    order = sa.orm.relationship(Order, back_populates='items')


# Time when the first order was created
T0 = datetime(2020, 1, 1, 12, 0, 0)


def given_orders(n: int) -> list[dict]:
    """ Make dicts for `n` orders, one hour apart

    Example:
        given_orders(2)
        => [dict(id=1, created_at=T0), dict(id=2, created_at=T0 + 1h)]
    """
    return [
        dict(id=i, created_at=T0 + timedelta(hours=i - 1), remark=None)
        for i in range(1, n + 1)
    ]


def given_items(order_id: int, *ids: int) -> list[dict]:
    """ Make dicts for items of an order """
    return [
        dict(id=id, name=f'item {id}', remark=None, order_id=order_id)
        for id in ids
    ]
