"""ORM tables for sources, articles, clusters and derived cluster scores."""

import os

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    PrimaryKeyConstraint,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

EMBEDDING_DIMENSIONS = int(os.environ.get("EMBEDDING_DIMENSIONS", "1536"))

# Keys of clusters created from embeddings alone start with this prefix
SYNTHETIC_KEY_PREFIX = "embedding:"

Base = declarative_base()


class Source(Base):
    __tablename__ = "sources"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    slug = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    homepage_url = Column(Text)
    feed_url = Column(Text)
    weight = Column(Float, nullable=False, default=1.0, server_default="1")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Article(Base):
    __tablename__ = "articles"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    source_id = Column(BigInteger, ForeignKey("sources.id"))
    url = Column(Text, nullable=False)
    canonical_url = Column(Text, nullable=False, unique=True)
    title = Column(Text, nullable=False)
    dek = Column(Text)
    author = Column(Text)
    published_at = Column(DateTime(timezone=True))
    fetched_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Enrichment: each written once, then treated as cached
    embedding = Column(Vector(EMBEDDING_DIMENSIONS))
    rewritten_title = Column(Text)
    rewritten_at = Column(DateTime(timezone=True))
    rewrite_model = Column(Text)
    rewrite_notes = Column(Text)
    content_text = Column(Text)
    content_html = Column(Text)
    content_status = Column(Text)
    content_word_count = Column(Integer)
    content_fetched_at = Column(DateTime(timezone=True))

    __table_args__ = (
        Index("ix_articles_published_at", "published_at"),
        Index("ix_articles_fetched_at", "fetched_at"),
    )


class Cluster(Base):
    __tablename__ = "clusters"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    key = Column(Text, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ArticleCluster(Base):
    __tablename__ = "article_clusters"

    article_id = Column(BigInteger, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False)
    cluster_id = Column(BigInteger, ForeignKey("clusters.id", ondelete="CASCADE"), nullable=False)
    added_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        PrimaryKeyConstraint("article_id", "cluster_id"),
        # An article belongs to at most one cluster
        UniqueConstraint("article_id", name="uq_article_clusters_article"),
        Index("ix_article_clusters_cluster_id", "cluster_id"),
    )


class ClusterScore(Base):
    __tablename__ = "cluster_scores"

    cluster_id = Column(BigInteger, ForeignKey("clusters.id", ondelete="CASCADE"), primary_key=True)
    lead_article_id = Column(BigInteger, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False)
    size = Column(Integer, nullable=False)
    score = Column(Float, nullable=False)
    why = Column(Text)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
