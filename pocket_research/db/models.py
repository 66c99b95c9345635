"""Peewee ORM models for the research database."""

from __future__ import annotations

import peewee

from pocket_research.domain.models.item import ProviderName
from pocket_research.domain.models.secrets import DEFAULT_USER_ID

# A proxy that will be initialised with the concrete database instance at runtime.
database_proxy: peewee.Database = peewee.DatabaseProxy()


class BaseModel(peewee.Model):
    """Base Peewee model bound to the lazily initialised database proxy."""

    class Meta:
        database = database_proxy
        legacy_table_names = False


class Provider(BaseModel):
    id = peewee.AutoField()
    name = peewee.TextField(unique=True)

    class Meta:
        table_name = "providers"


class ResearchItem(BaseModel):
    # Remote items keep the provider's id; local items get SQLite's rowid.
    id = peewee.AutoField()
    uri = peewee.TextField()
    title = peewee.TextField()
    excerpt = peewee.TextField(default="")
    time_added = peewee.BigIntegerField()
    favorite = peewee.BooleanField(default=False)
    lang = peewee.TextField(null=True)
    notes = peewee.TextField(null=True)
    provider = peewee.ForeignKeyField(Provider, backref="items", column_name="provider_id")

    class Meta:
        table_name = "items"
        indexes = (
            (("provider", "uri"), False),
            (("time_added",), False),
        )


class Tag(BaseModel):
    tag_name = peewee.TextField(primary_key=True)

    class Meta:
        table_name = "tags"


class ItemTag(BaseModel):
    item = peewee.ForeignKeyField(
        ResearchItem, backref="item_tags", column_name="item_id", on_delete="CASCADE"
    )
    tag = peewee.ForeignKeyField(
        Tag, backref="item_tags", column_name="tag_name", field=Tag.tag_name
    )

    class Meta:
        table_name = "item_tags"
        primary_key = peewee.CompositeKey("item", "tag")


class Secret(BaseModel):
    user_id = peewee.IntegerField(primary_key=True, default=DEFAULT_USER_ID)
    pocket_consumer_key = peewee.TextField(null=True)
    pocket_access_token = peewee.TextField(null=True)

    class Meta:
        table_name = "secrets"


ALL_MODELS: tuple[type[BaseModel], ...] = (
    Provider,
    ResearchItem,
    Tag,
    ItemTag,
    Secret,
)

SEED_PROVIDERS: tuple[str, ...] = tuple(provider.value for provider in ProviderName)
