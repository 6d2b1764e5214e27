"""
SQLAlchemy ORM models for the Recipe Planner.
All user-scoped entities include user_id for multi-user support.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    UUID as SQLAUUID,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

DEFAULT_UNITS = ("g", "kg", "ml", "l", "none")


class Base(DeclarativeBase):
    pass


class Unit(Base):
    """Measurement unit lookup (seeded, read-only)."""
    __tablename__ = "units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)


class Ingredient(Base):
    """User ingredient with a dense per-user position (sort)."""
    __tablename__ = "ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[UUID] = mapped_column(SQLAUUID, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    unit_id: Mapped[int] = mapped_column(ForeignKey("units.id"), nullable=False)
    # 1..N per user; only the position sequencer writes this column
    sort: Mapped[int] = mapped_column(Integer, nullable=False)

    unit: Mapped[Unit] = relationship(lazy="joined")
    recipe_ingredients: Mapped[List["RecipeIngredient"]] = relationship(
        back_populates="ingredient", cascade="all, delete-orphan"
    )
    shopping_list_ingredients: Mapped[List["ShoppingListIngredient"]] = relationship(
        back_populates="ingredient", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("user_id", "sort", name="uq_ingredients_user_sort"),
    )


class Recipe(Base):
    """Named set of ingredient quantities owned by a user."""
    __tablename__ = "recipes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[UUID] = mapped_column(SQLAUUID, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow
    )

    ingredients: Mapped[List["RecipeIngredient"]] = relationship(
        back_populates="recipe", cascade="all, delete-orphan"
    )


class RecipeIngredient(Base):
    """Quantity of one ingredient in a recipe."""
    __tablename__ = "recipe_ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[int] = mapped_column(ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    ingredient_id: Mapped[int] = mapped_column(
        ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    recipe: Mapped[Recipe] = relationship(back_populates="ingredients")
    ingredient: Mapped[Ingredient] = relationship(back_populates="recipe_ingredients")

    __table_args__ = (
        UniqueConstraint("recipe_id", "ingredient_id", name="uq_recipe_ingredients_recipe_ingredient"),
    )


class ShoppingList(Base):
    """User shopping list."""
    __tablename__ = "shopping_lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[UUID] = mapped_column(SQLAUUID, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)

    ingredients: Mapped[List["ShoppingListIngredient"]] = relationship(
        back_populates="shopping_list", cascade="all, delete-orphan"
    )


class ShoppingListIngredient(Base):
    """Link row between a shopping list and an ingredient; exists only while it has quantities."""
    __tablename__ = "shopping_list_ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shopping_list_id: Mapped[int] = mapped_column(
        ForeignKey("shopping_lists.id", ondelete="CASCADE"), nullable=False
    )
    ingredient_id: Mapped[int] = mapped_column(
        ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False
    )
    checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    shopping_list: Mapped[ShoppingList] = relationship(back_populates="ingredients")
    ingredient: Mapped[Ingredient] = relationship(back_populates="shopping_list_ingredients")
    quantities: Mapped[List["QuantityEntry"]] = relationship(
        back_populates="shopping_list_ingredient", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint(
            "shopping_list_id", "ingredient_id", name="uq_shopping_list_ingredients_list_ingredient"
        ),
    )


class QuantityEntry(Base):
    """Quantity contributed to a shopping list ingredient by one source (manual or a recipe)."""
    __tablename__ = "quantity_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shopping_list_ingredient_id: Mapped[int] = mapped_column(
        ForeignKey("shopping_list_ingredients.id", ondelete="CASCADE"), nullable=False
    )
    # NULL means the manual source
    recipe_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("recipes.id", ondelete="CASCADE"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    shopping_list_ingredient: Mapped[ShoppingListIngredient] = relationship(back_populates="quantities")

    __table_args__ = (
        UniqueConstraint(
            "shopping_list_ingredient_id", "recipe_id", name="uq_quantity_entries_link_recipe"
        ),
        Index(
            "uq_quantity_entries_link_manual",
            "shopping_list_ingredient_id",
            unique=True,
            postgresql_where=text("recipe_id IS NULL"),
            sqlite_where=text("recipe_id IS NULL"),
        ),
        Index("ix_quantity_entries_recipe_id", "recipe_id"),
    )
