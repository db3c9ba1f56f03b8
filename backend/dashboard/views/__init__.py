from dashboard.views.api_handlers import (
    adjust_tally as adjust_tally,
)
from dashboard.views.api_handlers import (
    create_game as create_game,
)
from dashboard.views.api_handlers import (
    get_tally as get_tally,
)
from dashboard.views.api_handlers import (
    get_trend as get_trend,
)
from dashboard.views.api_handlers import (
    list_games as list_games,
)
from dashboard.views.auth_handlers import (
    forgot_password as forgot_password,
)
from dashboard.views.auth_handlers import (
    logout as logout,
)
from dashboard.views.auth_handlers import (
    reset_page as reset_page,
)
from dashboard.views.auth_handlers import (
    reset_password as reset_password,
)
from dashboard.views.auth_handlers import (
    signin as signin,
)
from dashboard.views.auth_handlers import (
    signin_page as signin_page,
)
from dashboard.views.auth_handlers import (
    signup as signup,
)
from dashboard.views.dashboard_handlers import (
    add_game as add_game,
)
from dashboard.views.dashboard_handlers import (
    adjust_fault as adjust_fault,
)
from dashboard.views.dashboard_handlers import (
    adjust_score as adjust_score,
)
from dashboard.views.dashboard_handlers import (
    dashboard_page as dashboard_page,
)
from dashboard.views.dashboard_handlers import (
    refresh_games as refresh_games,
)
from dashboard.views.templating import create_templates as create_templates
