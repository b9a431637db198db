from faultline.cluster.selection.choose_random import choose_random as choose_random
