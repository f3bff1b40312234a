"""
# <>!
## Bakery algorithm
Lamport's bakery algorithm for N processes,
checked for mutual exclusion by exhaustive symbolic search.

Lamport, L.: A new solution of Dijkstra's concurrent programming problem.
Commun. ACM 17(8), 453–455 (1974). https://doi.org/10.1145/361082.361093
# </>
"""

# @status - done

# <>
# | We start by importing all symbols from the `prelude` module:
from prelude import *  # </>

# <>
# | ### The system
# | `BakerySystem` already defines the three atomic steps of every process
# | (see [`bakery`](bakery.html)):
# | drawing a ticket larger than all tickets in use,
# | entering the critical section with the strictly smallest ticket,
# | and exiting while giving the ticket back.
# |
# | Tickets are unbounded, so states are symbolic:
# | each live ticket is a variable and the store records how they relate.
# | The search prunes every state whose store is covered by
# | a region already explored for the same control vector,
# | which makes it terminate.
for processes in (2, 3):
    result = check_bakery(processes)
    assert not result.violated  # </>
