from respos.models.user import User
from respos.models.organization import Organization
from respos.models.address import Address
from respos.models.org_address_mapping import OrgAddressMapping
from respos.models.user_role_mapping import UserRoleMapping
from respos.models.user_rights_mapping import UserRightsMapping
from respos.models.user_login import UserLogin
from respos.models.booking import TableBooking, TableInformation
from respos.models.order import Order
