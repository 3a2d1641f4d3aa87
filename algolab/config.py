"""
Default settings shared by the engines and the command-line interface.
"""

# ==================== CPU scheduling ====================
DEFAULT_QUANTUM = 2              # Round Robin slice and MLFQ base quantum
MLFQ_QUANTUM_GROWTH = 2          # Each MLFQ level doubles the previous quantum
MLFQ_LEVELS = 3                  # Bounded levels derived from the base quantum

# ==================== Memory ====================
DEFAULT_MEMORY_SIZE = 200        # Units of memory in a fresh pool
DEFAULT_PARTITION_SIZE = 50      # MFT partition size

# ==================== Paging ====================
DEFAULT_FRAMES = 3
WSCLOCK_WINDOW = 4               # Working-set window tau, logical time units

# ==================== Disk scheduling ====================
DISK_CYLINDERS = 200             # Cylinders 0..199
DEFAULT_HEAD = 53

# ==================== File allocation ====================
BLOCK_POOL_SIZE = 48
DEFAULT_INDEX_BLOCKS = 1

# ==================== Synchronization ====================
BUFFER_CAPACITY = 5
BUFFER_INITIAL_ITEMS = 2
PHILOSOPHERS = 5

# ==================== Logging ====================
LOG_FORMAT = "%(name)s: %(message)s"
LOG_DATE_FORMAT = "[%X]"
