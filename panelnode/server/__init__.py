"""Console throttling, crash bookkeeping, power locking, mounts and server collections."""