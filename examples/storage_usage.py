"""
Example of persisting an embedstore snapshot.
"""

import shutil
import tempfile
import time
from pathlib import Path

import numpy as np

from embedstore import Store


def main():
    print("=" * 60)
    print("Snapshot Persistence Example")
    print("=" * 60)

    dimension = 128
    n_vectors = 10000
    temp_dir = Path(tempfile.mkdtemp(prefix="embedstore_example_"))
    path = temp_dir / "storage" / "db"

    try:
        rng = np.random.default_rng(42)
        vectors = rng.standard_normal((n_vectors, dimension)).astype(np.float32)

        # 1. Write
        print(f"\n1. Writing {n_vectors} vectors to {path}")
        with Store(path, compress=True) as store:
            collection = store.create_collection("vectors", dimension=dimension)
            for i, vector in enumerate(vectors):
                collection.insert(f"vec_{i}", vector, {"bucket": str(i % 10)})

            start = time.perf_counter()
            written = store.flush()
            print(f"   Flushed {written / 1024:.1f} KB in {time.perf_counter() - start:.3f}s")

        # 2. Reload
        print("\n2. Reloading")
        start = time.perf_counter()
        with Store(path) as store:
            print(f"   Loaded in {time.perf_counter() - start:.3f}s")
            print(f"   {store.collection_info('vectors').to_dict()}")

            results = store["vectors"].query_similarity(vectors[123], k=3)
            print(f"   Nearest to vec_123: {[(r.id, round(r.score, 4)) for r in results]}")

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print("\nDone!")


if __name__ == "__main__":
    main()
