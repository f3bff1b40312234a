"""
# <>!
## Bakery with ties
A broken variant of the bakery algorithm:
tickets may be drawn equal to tickets in use,
and a process may enter with a ticket equal to another one.
Without a tie-break on process ids,
two processes holding equal tickets can both enter.
# </>
"""

# @status - done

# <>
from prelude import *  # </>


# <>
# | Variants are defined by overriding the relations
# | that `draw_ticket` and `enter_critical` add to the store.
class TiedBakerySystem(BakerySystem):
    def draw_relation(self, fresh: TicketVar, other: TicketVar) -> Relation | None:
        return fresh >= other

    def entry_relation(self, own: TicketVar, other: TicketVar) -> Relation | None:
        return own <= other  # </>


# <>
# | The search reports the violating state,
# | the path leading to it, and concrete ticket values for it.
result = check_mutex(TiedBakerySystem(2), budget=SearchBudget(max_depth=20))
assert result.violated  # </>
