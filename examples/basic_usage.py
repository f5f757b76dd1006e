"""
Basic usage example for embedstore.
"""

import numpy as np
from embedstore import Store


def main():
    print("=" * 60)
    print("embedstore Basic Usage Example")
    print("=" * 60)

    rng = np.random.default_rng(0)

    # 1. Open an in-memory store
    print("\n1. Opening store...")
    store = Store()

    # 2. Create collection
    print("2. Creating collection...")
    documents = store.create_collection(
        name="documents",
        dimension=128,
        distance="cosine",
    )
    print(f"   Created: {documents.info().to_dict()}")

    # 3. Insert embeddings
    print("\n3. Inserting embeddings...")
    for i in range(100):
        documents.insert(
            id=f"doc_{i:03d}",
            vector=rng.standard_normal(128),
            metadata={
                "title": f"Document {i}",
                "category": ["tutorial", "guide", "reference"][i % 3],
                "year": str(2020 + (i % 5)),
            },
        )
    print(f"   Total in collection: {len(documents)}")

    # 4. Search
    print("\n4. Searching...")
    query = rng.standard_normal(128)
    for result in documents.query_similarity(query, k=5):
        print(f"   {result.id}: {result.score:.4f}")

    # 5. Filtered search (tutorials OR 2024 guides)
    print("\n5. Filtered search...")
    tutorials_or_new_guides = [
        {"category": "tutorial"},
        {"category": "guide", "year": "2024"},
    ]
    for result in documents.query_similarity(query, k=5, filter=tutorials_or_new_guides):
        print(f"   {result.id}: {result.score:.4f} {dict(result.embedding.metadata)}")

    # 6. Expression filter
    print("\n6. Expression filter...")
    recent = documents.query_by_filter(
        {"$and": [{"$eq": {"category": "reference"}}, {"$gte": {"year": "2023"}}]},
        k=None,
    )
    print(f"   Recent references: {[e.id for e in recent]}")

    # 7. Delete
    print("\n7. Deleting...")
    documents.delete_by_id("doc_000")
    removed = documents.delete_by_filter([{"category": "guide"}])
    print(f"   Removed {removed} guides, {len(documents)} left")

    store.close()
    print("\nDone!")


if __name__ == "__main__":
    main()
