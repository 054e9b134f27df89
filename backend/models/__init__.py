# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from models.profile import Profile
from models.habit import Habit
from models.habit_log import HabitLog
from models.goal import Goal
from models.goal_log import GoalLog
from models.goal_milestone import GoalMilestone
from models.metric_template import MetricTemplate
from models.metric_log import MetricLog
from models.reminder import Reminder

__all__ = [
    "Profile",
    "Habit",
    "HabitLog",
    "Goal",
    "GoalLog",
    "GoalMilestone",
    "MetricTemplate",
    "MetricLog",
    "Reminder",
]
